import logging
import random
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from remediq.core.abstract.q_table.base_q_table_manager import BaseQTableManager
from remediq.core.actions.catalog import ActionCatalog
from remediq.core.actions.executor import ActionExecutor
from remediq.core.entities.engine import EngineConfig, RunSummary, TrialRecord
from remediq.core.entities.report import AnalysisReport
from remediq.core.entities.state import DIMENSION_LEVELS
from remediq.core.errors import ConfigurationError
from remediq.core.pipelines.trial.trial_log import TrialLogWriter
from remediq.core.policy.epsilon_greedy import EpsilonGreedyPolicy, decay_epsilon
from remediq.core.q_table.state_encoder import StateEncoder
from remediq.core.reporting.analyzer import TrialAnalyzer
from remediq.core.rewards.reward_function import RewardFunction

MAX_BACKOFF_EXPONENT = 5

DEFAULT_READINESS = {dimension: levels[0] for dimension, levels in DIMENSION_LEVELS.items()}


class LoopPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    CHECKPOINTING = "checkpointing"
    TERMINAL = "terminal"


class TrialLoop:
    """
    Drives one bounded learning run.

    Each trial: encode state -> select action -> execute -> reward -> encode
    next state -> TD update -> update the failure streak -> decay epsilon ->
    record -> checkpoint every `checkpoint_interval` trials -> back off.

    The run stops after `max_trials` trials, or earlier when `goal_predicate`
    holds after a successful trial. The terminal step always persists the
    Q-table, writes the trial log and builds the analysis report.
    """

    def __init__(
        self,
        config: EngineConfig,
        catalog: ActionCatalog,
        executor: ActionExecutor,
        q_manager: BaseQTableManager,
        state_provider: Optional[Callable[[], Mapping[str, Any]]] = None,
        policy: Optional[EpsilonGreedyPolicy] = None,
        reward_function: Optional[RewardFunction] = None,
        encoder: Optional[StateEncoder] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
        goal_predicate: Optional[Callable[[], bool]] = None,
        trial_log_path: Optional[str] = None,
        report_path: Optional[str] = None,
        analysis_window: int = 5,
        log_source: Optional[Callable[[], List[Dict[str, Any]]]] = None,
    ):
        """
        Args:
            config: Learning and pacing parameters.
            catalog: Actions available to the policy.
            executor: Dispatches selected actions to their handlers.
            q_manager: Owner of the Q-table; its alpha/gamma are taken from `config`.
            state_provider: Returns the current readiness mapping (dimension -> level).
            policy: Action selector; defaults to an epsilon-greedy policy sharing `rng`.
            reward_function: Outcome scorer; defaults to the standard weights.
            encoder: State key builder.
            rng: Random generator for exploration and backoff jitter.
            sleep: Called with the inter-trial delay in seconds.
            goal_predicate: Optional check that ends the run early once it returns True.
            trial_log_path: Where the trial log is written.
            report_path: Where the analysis report is written.
            analysis_window: Rolling window used by the report.
            log_source: Returns captured log entries to embed in the report.

        Raises:
            ConfigurationError: If `config` is not an EngineConfig.
        """
        if not isinstance(config, EngineConfig):
            raise ConfigurationError(f"config must be an EngineConfig, got {type(config).__name__}")

        self.config = config
        self.catalog = catalog
        self.executor = executor
        self.q_manager = q_manager
        self.q_manager.alpha = config.alpha
        self.q_manager.gamma = config.gamma
        self.state_provider = state_provider
        self.rng = rng or random.Random()
        self.policy = policy or EpsilonGreedyPolicy(self.rng)
        self.reward_function = reward_function or RewardFunction()
        self.encoder = encoder or StateEncoder()
        self.sleep = sleep
        self.goal_predicate = goal_predicate
        self.trial_log = TrialLogWriter(trial_log_path) if trial_log_path else None
        self.report_path = report_path
        self.analysis_window = analysis_window
        self.log_source = log_source

        self.logger = logging.getLogger("REMEDIQ-Trials")

        self.epsilon = config.initial_epsilon
        self.trial_number = 0
        self.consecutive_failures = 0
        self.last_action = "none"
        self.records: List[TrialRecord] = []
        self.phase = LoopPhase.IDLE
        self.report: Optional[AnalysisReport] = None

        self.executor.validate()

    def current_state(self) -> str:
        snapshot = self.encoder.snapshot_from_mapping(
            self._probe_readiness(),
            trial_number=self.trial_number,
            consecutive_failures=self.consecutive_failures,
            last_action=self.last_action,
        )
        return self.encoder.encode(snapshot)

    def run_trial(self) -> TrialRecord:
        self.phase = LoopPhase.RUNNING
        self.trial_number += 1

        state = self.current_state()
        epsilon_used = self.epsilon
        action = self.policy.select(state, self.q_manager.row(state), epsilon_used, self.catalog)
        self.last_action = action

        self.logger.info(
            "Trial %d/%d: %s (epsilon=%.4f, failures=%d)",
            self.trial_number, self.config.max_trials, action, epsilon_used, self.consecutive_failures,
        )

        outcome = self.executor.execute(action)
        reward = self.reward_function.reward(outcome)
        next_state = self.current_state()
        self.q_manager.update_policy(state, action, reward, next_state)

        if outcome.success:
            self.consecutive_failures = 0
        else:
            self.consecutive_failures += 1

        self.epsilon = decay_epsilon(self.epsilon, self.config.epsilon_decay, self.config.min_epsilon)

        record = TrialRecord(
            trial=self.trial_number,
            action=action,
            success=outcome.success,
            reward=reward,
            duration_ms=outcome.duration_ms,
            error=outcome.error,
            consecutive_failures=self.consecutive_failures,
            epsilon=epsilon_used,
        )
        self.records.append(record)

        if self.trial_number % self.config.checkpoint_interval == 0:
            self.checkpoint()

        self.phase = LoopPhase.IDLE
        return record

    def checkpoint(self) -> bool:
        self.phase = LoopPhase.CHECKPOINTING
        saved = self.q_manager.save_q_table()
        if self.trial_log is not None:
            self.trial_log.write(self.records)
        self.logger.info("Checkpoint after trial %d", self.trial_number)
        return saved

    def compute_delay(self, consecutive_failures: int) -> float:
        """
        Inter-trial delay in milliseconds: exponential backoff on the failure
        streak (capped at 2**5) with up to `jitter` extra, never above `max_delay_ms`.
        """
        exponent = min(max(consecutive_failures, 0), MAX_BACKOFF_EXPONENT)
        jitter = self.rng.uniform(0.0, self.config.jitter)
        delay = self.config.base_delay_ms * (2 ** exponent) * (1 + jitter)
        return min(delay, self.config.max_delay_ms)

    def run(self) -> RunSummary:
        self.logger.info(
            "Starting run: max_trials=%d, alpha=%.3f, gamma=%.3f, epsilon=%.3f, decay=%.4f, actions=%d",
            self.config.max_trials, self.config.alpha, self.config.gamma,
            self.epsilon, self.config.epsilon_decay, len(self.catalog),
        )

        goal_reached = False
        interrupted = False
        try:
            while self.trial_number < self.config.max_trials:
                record = self.run_trial()

                if record.success and self._goal_reached():
                    self.logger.info("Goal reached after trial %d", self.trial_number)
                    goal_reached = True
                    break

                if self.trial_number < self.config.max_trials:
                    delay_ms = self.compute_delay(self.consecutive_failures)
                    self.logger.debug("Waiting %.0fms before next trial", delay_ms)
                    self.sleep(delay_ms / 1000.0)
        except KeyboardInterrupt:
            self.logger.warning("Run interrupted after %d trials", self.trial_number)
            interrupted = True

        return self.finalize(goal_reached=goal_reached, interrupted=interrupted)

    def finalize(self, goal_reached: bool = False, interrupted: bool = False) -> RunSummary:
        self.phase = LoopPhase.TERMINAL

        saved = self.q_manager.save_q_table()
        if self.trial_log is not None:
            self.trial_log.write(self.records)

        analyzer = TrialAnalyzer(self.records, window=self.analysis_window)
        self.report = analyzer.build_report(
            q_table=self.q_manager.get_q_table(),
            final_epsilon=self.epsilon,
            goal_reached=goal_reached,
            parameters=self.config.model_dump(),
            logs=self.log_source() if self.log_source else None,
        )
        analyzer.log_summary(self.report)

        if self.report_path:
            try:
                analyzer.save_report(self.report, self.report_path)
                self.logger.info("Analysis report saved to %s", self.report_path)
            except OSError as e:
                self.logger.error("Failed to save analysis report to %s: %s", self.report_path, e)

        return RunSummary(
            trials=len(self.records),
            successes=sum(1 for r in self.records if r.success),
            final_epsilon=self.epsilon,
            consecutive_failures=self.consecutive_failures,
            goal_reached=goal_reached,
            interrupted=interrupted,
            q_table_saved=saved,
            q_table_states=self.q_manager.num_states,
            q_table_entries=self.q_manager.num_entries,
        )

    def _probe_readiness(self) -> Mapping[str, Any]:
        if self.state_provider is None:
            return DEFAULT_READINESS
        try:
            return self.state_provider() or {}
        except Exception as e:
            self.logger.warning("Readiness probe failed, assuming defaults: %s", e)
            return DEFAULT_READINESS

    def _goal_reached(self) -> bool:
        if self.goal_predicate is None:
            return False
        try:
            return bool(self.goal_predicate())
        except Exception as e:
            self.logger.warning("Goal check failed: %s", e)
            return False
