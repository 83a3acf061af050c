import json
import logging
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List


class TrialTraceLogger(logging.Handler):
    """
    A logging handler that keeps structured log entries in memory.

    Used by the CLI to embed the warnings and errors of a run in its analysis
    report. Each entry carries the level as `type`, the rendered message as
    `description`, the emitting logger and trial context as `payload`, and a
    timestamp.

    Usage:
        handler = TrialTraceLogger.setup(level=logging.WARNING)
        logging.warning("captured")
        logs = handler.get_logs()
    """

    def __init__(self, level=logging.NOTSET):
        super().__init__(level)
        self.execution_logs: List[Dict[str, Any]] = []
        self._lock = Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            payload: Dict[str, Any] = {"logger": record.name}
            trial = getattr(record, "trial", None)
            if trial is not None:
                payload["trial"] = trial

            log_entry = {
                "type": record.levelname,
                "description": record.getMessage(),
                "payload": payload,
                "timestamp": datetime.now().isoformat(),
            }

            with self._lock:
                self.execution_logs.append(log_entry)

        except Exception:
            self.handleError(record)

    def get_logs(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self.execution_logs.copy()

    def get_logs_json(self) -> str:
        return json.dumps(self.get_logs(), indent=2)

    def clear_logs(self) -> None:
        with self._lock:
            self.execution_logs.clear()

    def get_logs_by_type(self, log_type: str) -> List[Dict[str, Any]]:
        """Returns logs filtered by level name (INFO, WARNING, ERROR, ...)."""
        with self._lock:
            return [log for log in self.execution_logs if log["type"] == log_type.upper()]

    def get_logs_count(self) -> int:
        with self._lock:
            return len(self.execution_logs)

    def detach(self) -> None:
        """Remove the handler from the root logger."""
        logging.getLogger().removeHandler(self)

    @classmethod
    def setup(cls, level=logging.WARNING) -> "TrialTraceLogger":
        """
        Attach a new handler to the root logger and return it.

        The root level is lowered to `level` if needed so that matching
        records reach the handler.
        """
        handler = cls(level)

        root_logger = logging.getLogger()
        root_logger.addHandler(handler)

        if root_logger.level > level:
            root_logger.setLevel(level)

        return handler
