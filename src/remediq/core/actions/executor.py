import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from remediq.core.abstract.integrations.base_action_handler import BaseActionHandler
from remediq.core.actions.catalog import ActionCatalog
from remediq.core.entities.engine import ExecutionOutcome

logger = logging.getLogger("REMEDIQ-Executor")

UNKNOWN_ACTION = "unknown action"


class ActionExecutor:
    """
    Dispatches action names to their registered handlers.

    `execute` never raises: handler exceptions, malformed handler results and
    actions without a handler all come back as failed `ExecutionOutcome`s, so a
    single broken adapter cannot stop the trial loop. Wall-clock duration is
    measured on every path.
    """

    def __init__(
        self,
        catalog: ActionCatalog,
        handlers: Optional[Iterable[BaseActionHandler]] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Args:
            catalog: The actions the engine may select.
            handlers: Handlers to register up front.
            clock: Monotonic clock in seconds, injectable for tests.
        """
        self.catalog = catalog
        self._clock = clock
        self._handlers: Dict[str, BaseActionHandler] = {}

        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: BaseActionHandler) -> None:
        if handler.name in self._handlers:
            logger.warning("Replacing handler for action '%s'", handler.name)
        self._handlers[handler.name] = handler

    def handler_for(self, action_name: str) -> Optional[BaseActionHandler]:
        return self._handlers.get(action_name)

    @property
    def handlers(self) -> Mapping[str, BaseActionHandler]:
        return dict(self._handlers)

    def validate(self) -> List[str]:
        """
        Check that catalog and registry agree.

        Missing handlers are not fatal; those actions will fail as unknown when
        selected.

        Returns:
            list: Catalog actions that have no registered handler.
        """
        missing = [name for name in self.catalog.names if name not in self._handlers]
        for name in missing:
            logger.warning("No handler registered for action '%s'; it will fail when selected", name)

        for name in self._handlers:
            if name not in self.catalog:
                logger.warning("Handler '%s' is registered but the action is not in the catalog", name)

        return missing

    def execute(self, action_name: str) -> ExecutionOutcome:
        category = self.catalog.category_of(action_name)
        handler = self._handlers.get(action_name) if category is not None else None

        success = False
        error: Optional[str] = None
        details: Dict[str, Any] = {}

        start = self._clock()
        if handler is None:
            error = UNKNOWN_ACTION
            details = {"error": error}
        else:
            try:
                result = handler.run()
                if not isinstance(result, Mapping):
                    raise TypeError(
                        f"handler returned {type(result).__name__}, expected a mapping"
                    )
                details = dict(result)
                success = details.get("success") is True
                raw_error = details.get("error")
                error = str(raw_error) if raw_error else None
            except Exception as e:
                success = False
                error = str(e) or type(e).__name__
                details = {"error": error, "exception": type(e).__name__}
                logger.warning("Action '%s' raised %s: %s", action_name, type(e).__name__, error)
        duration_ms = max(0, int(round((self._clock() - start) * 1000)))

        if success:
            logger.info("Action '%s' succeeded in %dms", action_name, duration_ms)
        else:
            logger.info("Action '%s' failed in %dms: %s", action_name, duration_ms, error)

        return ExecutionOutcome(
            action=action_name,
            category=category,
            success=success,
            error=None if success else error,
            details=details,
            duration_ms=duration_ms,
        )
