import json
import logging
from typing import List, Sequence

from pydantic import TypeAdapter, ValidationError

from remediq.core.entities.engine import TrialRecord
from remediq.core.errors import PersistenceError
from remediq.utils.io_utils import atomic_write_text

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(List[TrialRecord])


class TrialLogWriter:
    """Reads and writes the ordered trial log as a JSON list of records."""

    def __init__(self, file_path: str):
        self.file_path = file_path

    def write(self, records: Sequence[TrialRecord]) -> bool:
        try:
            atomic_write_text(self.file_path, _RECORDS.dump_json(list(records), indent=2).decode("utf-8"))
            logger.info("Trial log written to %s (%d trials)", self.file_path, len(records))
            return True
        except OSError as e:
            logger.error("Failed to write trial log to %s: %s", self.file_path, e)
            return False

    def load(self, strict: bool = False) -> List[TrialRecord]:
        """
        Read the trial log back.

        Args:
            strict: Raise on a missing or corrupt log instead of returning [].

        Raises:
            PersistenceError: In strict mode, when the log cannot be read.
        """
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                return _RECORDS.validate_python(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            if strict:
                raise PersistenceError(f"Cannot read trial log {self.file_path}: {e}") from e
            logger.warning("Cannot read trial log %s, treating it as empty: %s", self.file_path, e)
            return []
