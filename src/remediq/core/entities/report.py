from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from remediq.core.entities.engine import TrialRecord


class AnalysisSummary(BaseModel):
    total_trials: int
    successful_trials: int
    success_rate: float = Field(..., description="Percentage, 0-100")
    average_reward: float
    average_duration_ms: float


class ActionStats(BaseModel):
    total: int = 0
    successes: int = 0
    total_reward: float = 0.0

    @property
    def success_rate(self) -> float:
        return (self.successes / self.total * 100) if self.total else 0.0

    @property
    def avg_reward(self) -> float:
        return self.total_reward / self.total if self.total else 0.0


class RollingPoint(BaseModel):
    trial: int
    success_rate: float


class Finding(BaseModel):
    type: str
    severity: Literal["low", "medium", "high"]
    description: str
    suggestion: str


class RewardBucket(BaseModel):
    range: str
    count: int
    percentage: float


class RewardDistribution(BaseModel):
    buckets: List[RewardBucket]
    min_reward: float
    max_reward: float


class QValueSummary(BaseModel):
    states: int
    actions: int
    min_q: float
    max_q: float
    greedy_actions: Dict[str, str] = Field(default_factory=dict, description="State key -> highest-valued action")


class NextStep(BaseModel):
    step: int
    action: str
    priority: Literal["low", "medium", "high"]


class AnalysisReport(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    summary: AnalysisSummary
    parameters: Dict[str, Any] = Field(default_factory=dict)
    final_epsilon: Optional[float] = None
    goal_reached: bool = False
    action_stats: Dict[str, Dict[str, float]] = Field(default_factory=dict)
    rolling_window: int = 5
    rolling_success_rate: List[RollingPoint] = Field(default_factory=list)
    improvement_rate: Optional[float] = None
    convergence_trial: Optional[int] = None
    q_table_states: int = 0
    q_table_entries: int = 0
    reward_distribution: Optional[RewardDistribution] = None
    q_values: Optional[QValueSummary] = None
    issues: List[Finding] = Field(default_factory=list)
    recommendations: List[Finding] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    next_steps: List[NextStep] = Field(default_factory=list)
    logs: List[Dict[str, Any]] = Field(default_factory=list)
    trial_results: List[TrialRecord] = Field(default_factory=list)
