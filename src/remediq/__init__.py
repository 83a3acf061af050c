# src/remediq/__init__.py

# --- Version of the remediq package ---

__version__ = "0.1.0"


# --- Logging ---
from .logger.remediq_trace_logger import TrialTraceLogger

# --- Configuration ---
from .config import EngineSettings

# --- Engine ---
from .core.actions.catalog import ActionCatalog, default_catalog
from .core.actions.executor import ActionExecutor
from .core.entities.engine import ActionCategory, ActionSpec, EngineConfig, RunSummary, TrialRecord
from .core.pipelines.trial.trial_loop import TrialLoop
from .core.policy.epsilon_greedy import EpsilonGreedyPolicy
from .core.q_table.q_table_manager import QTableManager
from .core.q_table.state_encoder import StateEncoder
from .core.rewards.reward_function import RewardFunction, RewardWeights

# --- Reporting ---
from .core.reporting.analyzer import TrialAnalyzer

# --- Orchestration ---
from .orchestrations.trial_orchestrator import RemediqTrialOrchestrator, remediq_run_pipeline


# --- Convenience function to get the package version ---
def get_version():
    return __version__


import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
