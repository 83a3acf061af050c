import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from remediq.core.entities.engine import ActionCategory, ExecutionOutcome
from remediq.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ErrorPenalty(BaseModel):
    label: str
    patterns: List[str] = Field(..., min_length=1, description="Case-insensitive substrings")
    penalty: float = Field(..., le=0)


def _default_category_bonus() -> Dict[ActionCategory, float]:
    return {
        ActionCategory.DEPLOYMENT: 8.0,
        ActionCategory.INTEGRATION: 6.0,
        ActionCategory.CONFIGURATION: 5.0,
        ActionCategory.RESILIENCE: 4.0,
        ActionCategory.TESTING: 3.0,
        ActionCategory.TOOLING: 2.0,
    }


def _default_error_penalties() -> List[ErrorPenalty]:
    # Checked in order, first match wins.
    return [
        ErrorPenalty(label="deployment", patterns=["deployment", "deploy failed"], penalty=-4.0),
        ErrorPenalty(
            label="authentication",
            patterns=["authentication", "unauthorized", "forbidden", "invalid token"],
            penalty=-3.0,
        ),
        ErrorPenalty(label="configuration", patterns=["configuration", "misconfigured"], penalty=-2.0),
        ErrorPenalty(label="not-configured", patterns=["not configured", "not yet configured"], penalty=0.0),
    ]


class RewardWeights(BaseModel):
    """Tunable constants of the reward signal."""

    success_base: float = 10.0
    failure_base: float = -5.0
    category_bonus: Dict[ActionCategory, float] = Field(default_factory=_default_category_bonus)
    very_fast_ms: int = Field(1000, ge=0)
    very_fast_bonus: float = 2.0
    fast_ms: int = Field(5000, ge=0)
    fast_bonus: float = 1.0
    error_penalties: List[ErrorPenalty] = Field(default_factory=_default_error_penalties)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None) -> "RewardWeights":
        """
        Build weights from a partial mapping; category bonuses are merged over the defaults.

        Raises:
            ConfigurationError: On invalid values.
        """
        values = dict(data or {})
        if "category_bonus" in values:
            merged = {k.value: v for k, v in _default_category_bonus().items()}
            merged.update(values["category_bonus"] or {})
            values["category_bonus"] = merged
        try:
            return cls(**values)
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Invalid reward weights: {e}") from e


class RewardFunction:
    """
    Maps an execution outcome to a scalar reward.

    Success: base reward, plus the category bonus, plus a bonus for fast
    actions (two tiers). Failure: base penalty, plus the penalty of the first
    error class whose pattern occurs in the error message. Anything unrecognised
    gets the base value only.
    """

    def __init__(self, weights: Optional[RewardWeights] = None):
        self.weights = weights or RewardWeights()

    def reward(self, outcome: ExecutionOutcome) -> float:
        w = self.weights

        if outcome.success:
            reward = w.success_base
            if outcome.category is not None:
                reward += w.category_bonus.get(outcome.category, 0.0)
            if outcome.duration_ms < w.very_fast_ms:
                reward += w.very_fast_bonus
            elif outcome.duration_ms < w.fast_ms:
                reward += w.fast_bonus
        else:
            reward = w.failure_base
            penalty = self.classify_error(outcome.error)
            if penalty is not None:
                reward += penalty.penalty

        return float(reward)

    def classify_error(self, error: Optional[str]) -> Optional[ErrorPenalty]:
        if not error:
            return None
        message = error.lower()
        for penalty in self.weights.error_penalties:
            if any(pattern.lower() in message for pattern in penalty.patterns):
                return penalty
        return None
