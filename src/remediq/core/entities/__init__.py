from .engine import (
    ActionCategory,
    ActionSpec,
    EngineConfig,
    ExecutionOutcome,
    RunSummary,
    TrialRecord,
)
from .q_table import QTablePayload, QTableStats
from .report import ActionStats, AnalysisReport, AnalysisSummary, Finding, RollingPoint
from .state import DIMENSION_LEVELS, StateSnapshot, default_level

__all__ = [
    "ActionCategory",
    "ActionSpec",
    "EngineConfig",
    "ExecutionOutcome",
    "RunSummary",
    "TrialRecord",
    "QTablePayload",
    "QTableStats",
    "ActionStats",
    "AnalysisReport",
    "AnalysisSummary",
    "Finding",
    "RollingPoint",
    "DIMENSION_LEVELS",
    "StateSnapshot",
    "default_level",
]
