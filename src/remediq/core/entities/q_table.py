from pydantic import BaseModel, Field
from typing import Dict, List
from datetime import datetime, timezone


class QTableStats(BaseModel):
    states: int = 0
    entries: int = 0


class QTablePayload(BaseModel):
    Q_table: Dict[str, Dict[str, float]] = Field(
        ..., description="Nested Q-table: state key -> action name -> value"
    )
    seen_states: List[str] = Field(
        default_factory=list, description="State keys the learner has acted from"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the Q-table was saved"
    )
    version: str = Field(
        ..., description="Q-table version identifier"
    )
    stats: QTableStats = Field(default_factory=QTableStats)
