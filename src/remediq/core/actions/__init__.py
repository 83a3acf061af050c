from .catalog import DEFAULT_ACTIONS, DEFAULT_CATEGORY_WEIGHTS, ActionCatalog, default_catalog
from .executor import UNKNOWN_ACTION, ActionExecutor

__all__ = [
    "DEFAULT_ACTIONS",
    "DEFAULT_CATEGORY_WEIGHTS",
    "ActionCatalog",
    "default_catalog",
    "UNKNOWN_ACTION",
    "ActionExecutor",
]
