import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import TypeAdapter, ValidationError

from remediq.core.entities.q_table import QTablePayload, QTableStats
from remediq.utils.io_utils import atomic_write_text

logger = logging.getLogger("REMEDIQ-Qtable")

_LEGACY_TABLE = TypeAdapter(Dict[str, Dict[str, float]])


class BaseQTableManager(ABC):
    """
    Owns the Q-table (state key -> action -> value) and its on-disk copy.

    Readers get copies through `row`, `Q` and `get_q_table`; the only mutator is
    `update_policy`, implemented by subclasses.
    """

    def __init__(self, file_path: str, alpha: float = 0.1, gamma: float = 0.9):
        self.file_path = file_path
        self.alpha = alpha
        self.gamma = gamma

        # Internal structure: state -> {action: value}
        self.Q_table: Dict[str, Dict[str, float]] = {}
        self.seen_states: set = set()

    @abstractmethod
    def update_policy(self, s: str, a: str, R: float, s_prime: str) -> float:
        pass

    def Q(self, s: str, a: str) -> float:
        return self.Q_table.get(s, {}).get(a, 0.0)

    def row(self, s: str) -> Dict[str, float]:
        return dict(self.Q_table.get(s, {}))

    def max_q(self, s: str) -> float:
        values = self.Q_table.get(s)
        return max(values.values()) if values else 0.0

    def get_q_table(self) -> Dict[str, Dict[str, float]]:
        return {state: dict(actions) for state, actions in self.Q_table.items()}

    @property
    def num_states(self) -> int:
        return len(self.Q_table)

    @property
    def num_entries(self) -> int:
        return sum(len(actions) for actions in self.Q_table.values())

    def save_q_table(self, prefix_version: Optional[str] = None) -> bool:
        """
        Persist the Q-table as a whole-file overwrite.

        Args:
            prefix_version: Optional prefix for the stored version identifier.

        Returns:
            bool: True if the file was written.
        """
        try:
            version = prefix_version + "_" + uuid.uuid4().hex[:5] if prefix_version else "1.0"

            payload = QTablePayload(
                Q_table=self.get_q_table(),
                seen_states=sorted(self.seen_states),
                version=version,
                timestamp=datetime.now(timezone.utc),
                stats=QTableStats(states=self.num_states, entries=self.num_entries),
            )

            atomic_write_text(self.file_path, payload.model_dump_json(indent=2))

            logger.info(f"Q-table saved to {self.file_path} ({self.num_entries} entries)")
            return True

        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save Q-table to {self.file_path}: {e}")
            return False

    def load_q_table(self) -> bool:
        """
        Replace the in-memory table with the persisted one.

        A missing file is normal on first start; a corrupt file is logged and
        discarded. In both cases the table is left empty and False is returned.

        Returns:
            bool: True if a table was loaded.
        """
        self.Q_table = {}
        self.seen_states = set()

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            logger.info(f"No Q-table at {self.file_path}, starting with an empty table")
            return False
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable Q-table at {self.file_path}, starting fresh: {e}")
            return False

        try:
            if isinstance(raw, dict) and "Q_table" in raw:
                payload = QTablePayload.model_validate(raw)
                table, seen = payload.Q_table, payload.seen_states
            else:
                # Bare {state: {action: value}} files written by older agents
                table, seen = _LEGACY_TABLE.validate_python(raw), []
        except ValidationError as e:
            logger.warning(f"Invalid Q-table payload in {self.file_path}, starting fresh: {e}")
            return False

        self.Q_table = {state: dict(actions) for state, actions in table.items()}
        self.seen_states = set(seen)

        logger.info(f"Loaded Q-table from {self.file_path}")
        logger.info(f"Loaded {self.num_entries} state-action pairs across {self.num_states} states")
        return True
