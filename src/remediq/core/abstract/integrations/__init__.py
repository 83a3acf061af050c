from .base_action_handler import BaseActionHandler
from .base_config import BaseConfig

__all__ = ["BaseActionHandler", "BaseConfig"]
