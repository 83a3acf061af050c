import time
from typing import Any, Dict, List, Optional, Sequence

from remediq.core.abstract.integrations.base_action_handler import BaseActionHandler
from remediq.core.actions.catalog import ActionCatalog
from remediq.core.entities.engine import ActionCategory


class FakeActionHandler(BaseActionHandler):
    """
    Scripted handler for tests and dry runs.

    With `outcomes`, each call returns the next scripted result and the last
    one repeats once the script runs out. Without it, every call returns the
    fixed `success` / `error` pair.
    """

    def __init__(
        self,
        name: str,
        category: ActionCategory,
        success: bool = True,
        error: Optional[str] = None,
        delay_ms: int = 0,
        outcomes: Optional[Sequence[Dict[str, Any]]] = None,
    ):
        super().__init__(name, category)
        self.success = success
        self.error = error
        self.delay_ms = delay_ms
        self.outcomes: List[Dict[str, Any]] = list(outcomes or [])
        self.calls = 0

    def run(self) -> Dict[str, Any]:
        self.calls += 1
        if self.delay_ms:
            time.sleep(self.delay_ms / 1000.0)

        if self.outcomes:
            index = min(self.calls, len(self.outcomes)) - 1
            return dict(self.outcomes[index])

        result: Dict[str, Any] = {"success": self.success}
        if not self.success:
            result["error"] = self.error
        return result


class RaisingActionHandler(BaseActionHandler):
    """Handler whose `run` always raises the given exception."""

    def __init__(self, name: str, category: ActionCategory, exc: BaseException):
        super().__init__(name, category)
        self.exc = exc
        self.calls = 0

    def run(self) -> Dict[str, Any]:
        self.calls += 1
        raise self.exc


def fake_handlers_for(
    catalog: ActionCatalog, success: bool = False, error: Optional[str] = "not configured"
) -> List[FakeActionHandler]:
    """One fake handler per catalog action; the default makes every action fail as not configured."""
    return [
        FakeActionHandler(spec.name, spec.category, success=success, error=None if success else error)
        for spec in catalog
    ]
