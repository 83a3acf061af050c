from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from remediq.core.errors import ConfigurationError


class ActionCategory(str, Enum):
    CONFIGURATION = "configuration"
    TESTING = "testing"
    DEPLOYMENT = "deployment"
    INTEGRATION = "integration"
    RESILIENCE = "resilience"
    TOOLING = "tooling"

########################################################-----########################################################

class ActionSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique action name, e.g. 'deploy-vercel-production'")
    category: ActionCategory

########################################################-----########################################################

class ExecutionOutcome(BaseModel):
    action: str
    category: Optional[ActionCategory] = None
    success: bool
    error: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    duration_ms: int = Field(0, ge=0)


class TrialRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    trial: int = Field(..., ge=1)
    action: str
    success: bool
    reward: float
    duration_ms: int = Field(..., ge=0)
    error: Optional[str] = None
    consecutive_failures: int = Field(..., ge=0, description="Failure streak after this trial")
    epsilon: float = Field(..., description="Exploration rate used to select the action")

########################################################-----########################################################

class EngineConfig(BaseModel):
    """
    Learning and pacing parameters for one run. Read-only once built.

    Delays are in milliseconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    alpha: float = 0.1
    gamma: float = 0.9
    initial_epsilon: float = 0.3
    min_epsilon: float = 0.05
    epsilon_decay: float = 0.998
    max_trials: int = 30
    checkpoint_interval: int = 5
    base_delay_ms: float = 500.0
    max_delay_ms: float = 30000.0
    jitter: float = 0.1

    @model_validator(mode="after")
    def _check_ranges(self) -> "EngineConfig":
        problems: List[str] = []

        if not 0.0 < self.alpha <= 1.0:
            problems.append(f"alpha must be in (0, 1], got {self.alpha}")
        if not 0.0 <= self.gamma <= 1.0:
            problems.append(f"gamma must be in [0, 1], got {self.gamma}")
        if not 0.0 <= self.min_epsilon <= self.initial_epsilon <= 1.0:
            problems.append(
                "epsilon bounds must satisfy 0 <= min_epsilon <= initial_epsilon <= 1, "
                f"got min_epsilon={self.min_epsilon}, initial_epsilon={self.initial_epsilon}"
            )
        if not 0.0 < self.epsilon_decay <= 1.0:
            problems.append(f"epsilon_decay must be in (0, 1], got {self.epsilon_decay}")
        if self.max_trials < 0:
            problems.append(f"max_trials must be >= 0, got {self.max_trials}")
        if self.checkpoint_interval < 1:
            problems.append(f"checkpoint_interval must be >= 1, got {self.checkpoint_interval}")
        if self.base_delay_ms < 0 or self.max_delay_ms < 0:
            problems.append("delays must be non-negative")
        elif self.base_delay_ms > self.max_delay_ms:
            problems.append(
                f"base_delay_ms ({self.base_delay_ms}) must not exceed max_delay_ms ({self.max_delay_ms})"
            )
        if not 0.0 <= self.jitter <= 1.0:
            problems.append(f"jitter must be in [0, 1], got {self.jitter}")

        if problems:
            raise ValueError("; ".join(problems))
        return self

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]] = None, **overrides) -> "EngineConfig":
        """
        Build a config from a (possibly partial) mapping plus keyword overrides.

        Raises:
            ConfigurationError: If a value is out of range or a key is unknown.
        """
        values = dict(data or {})
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid engine configuration: {e}") from e

########################################################-----########################################################

class RunSummary(BaseModel):
    trials: int
    successes: int
    final_epsilon: float
    consecutive_failures: int
    goal_reached: bool = False
    interrupted: bool = False
    q_table_saved: bool = False
    q_table_states: int = 0
    q_table_entries: int = 0
