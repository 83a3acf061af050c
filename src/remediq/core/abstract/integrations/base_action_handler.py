from abc import ABC, abstractmethod
from typing import Any, Dict

from remediq.core.entities.engine import ActionCategory


class BaseActionHandler(ABC):
    """
    Abstract base class for the adapters that carry out one named action.

    The engine treats every handler as an opaque capability: it calls `run`,
    reads the `success` and `error` keys of the result and keeps the rest as
    details. Handlers are expected to enforce their own timeouts.
    """

    def __init__(self, name: str, category: ActionCategory):
        """
        Args:
            name: Action name this handler is registered under.
            category: Category of the action, used for logging only.
        """
        self.name = name
        self.category = ActionCategory(category)

    @abstractmethod
    def run(self) -> Dict[str, Any]:
        """
        Perform the action.

        Returns:
            dict: At least {"success": bool}; failures should carry an "error" message.
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', category='{self.category.value}')"
