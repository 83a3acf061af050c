import json
import logging
from typing import Any, Mapping, Optional, Union

from remediq.core.entities.state import DIMENSION_LEVELS, StateSnapshot

logger = logging.getLogger(__name__)


class StateEncoder:
    """
    Turns readiness snapshots into canonical Q-table keys.

    Keys are compact JSON objects whose field order is fixed: trial bookkeeping
    first, then every readiness dimension in `DIMENSION_LEVELS` order. Equal
    snapshots always produce byte-identical keys.
    """

    def __init__(self, include_trial_number: bool = True):
        """
        Args:
            include_trial_number: Whether the trial counter is part of the key.
                Leaving it out lets learned values carry over between trials that
                otherwise look the same.
        """
        self.include_trial_number = include_trial_number

    def encode(self, snapshot: Union[StateSnapshot, Mapping[str, Any]]) -> str:
        if not isinstance(snapshot, StateSnapshot):
            snapshot = self.snapshot_from_mapping(
                snapshot,
                trial_number=snapshot.get("trial_number", 0),
                consecutive_failures=snapshot.get("consecutive_failures", 0),
                last_action=snapshot.get("last_action", "none"),
            )

        fields = []
        if self.include_trial_number:
            fields.append(("trial", snapshot.trial_number))
        fields.append(("failures", snapshot.consecutive_failures))
        fields.append(("last_action", snapshot.last_action))
        for dimension in DIMENSION_LEVELS:
            fields.append((dimension, getattr(snapshot, dimension)))

        return json.dumps(dict(fields), separators=(",", ":"))

    def snapshot_from_mapping(
        self,
        readiness: Optional[Mapping[str, Any]],
        trial_number: int = 0,
        consecutive_failures: int = 0,
        last_action: Optional[str] = "none",
    ) -> StateSnapshot:
        """
        Build a snapshot from raw probe output without ever raising.

        Missing or unrecognised dimension values fall back to the dimension's
        "not-" level so the key stays total.
        """
        readiness = readiness or {}
        values = {}

        for dimension, levels in DIMENSION_LEVELS.items():
            value = readiness.get(dimension)
            if value not in levels:
                if value is None:
                    logger.warning("Readiness dimension '%s' missing, assuming '%s'", dimension, levels[0])
                else:
                    logger.warning(
                        "Readiness dimension '%s' has unknown value %r, assuming '%s'",
                        dimension, value, levels[0],
                    )
                value = levels[0]
            values[dimension] = value

        return StateSnapshot(
            **values,
            trial_number=_non_negative_int(trial_number),
            consecutive_failures=_non_negative_int(consecutive_failures),
            last_action=str(last_action) if last_action else "none",
        )


def _non_negative_int(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        logger.warning("Invalid counter value %r, using 0", value)
        return 0
