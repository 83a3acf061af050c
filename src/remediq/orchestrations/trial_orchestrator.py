import logging
import random
from typing import Callable, List, Optional

import requests

from remediq.adapters.fake import fake_handlers_for
from remediq.adapters.services import CommandHandler, build_default_handlers
from remediq.config import EngineSettings
from remediq.core.abstract.integrations.base_action_handler import BaseActionHandler
from remediq.core.actions.catalog import ActionCatalog
from remediq.core.actions.executor import ActionExecutor
from remediq.core.entities.engine import RunSummary
from remediq.core.pipelines.trial.trial_loop import TrialLoop
from remediq.core.probes.readiness import ReadinessProbe
from remediq.core.q_table.q_table_manager import QTableManager
from remediq.core.q_table.state_encoder import StateEncoder
from remediq.core.rewards.reward_function import RewardFunction
from remediq.logger.remediq_trace_logger import TrialTraceLogger


class RemediqTrialOrchestrator:
    """
    Wires a TrialLoop from EngineSettings:
    1. Catalog and handlers - default service adapters, or scripted failures for dry runs
    2. Q-table - resumed from the configured path when a previous run left one
    3. Readiness probe and optional goal check
    4. Reward weights, encoder options and output paths
    """

    def __init__(
        self,
        settings: EngineSettings,
        dry_run: bool = False,
        max_trials: Optional[int] = None,
        trace_handler: Optional[TrialTraceLogger] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            settings: Loaded configuration.
            dry_run: Use fake handlers that fail as "not configured" instead of real services.
            max_trials: Overrides `engine.max_trials` when given.
            trace_handler: Captured log entries are embedded in the analysis report.
            rng: Random generator shared by the policy and backoff jitter.
        """
        self.logger = logging.getLogger("REMEDIQ-Run")
        self.settings = settings
        self.dry_run = dry_run
        self.max_trials = max_trials
        self.trace_handler = trace_handler
        self.rng = rng

        self.catalog: Optional[ActionCatalog] = None
        self.q_manager: Optional[QTableManager] = None
        self.trial_loop: Optional[TrialLoop] = None

    def build_handlers(self, catalog: ActionCatalog) -> List[BaseActionHandler]:
        if self.dry_run:
            self.logger.info("Dry run: every action fails as not configured")
            return list(fake_handlers_for(catalog))

        project_root = self.settings.path("project_root")
        commands = self.settings.commands()
        command_timeout = self.settings.timeout("command_seconds")
        handlers = [
            handler
            for handler in build_default_handlers(
                project_root=project_root,
                commands=commands,
                http_timeout=self.settings.timeout("http_seconds"),
                command_timeout=command_timeout,
            )
            if handler.name in catalog
        ]

        # Custom catalog actions are driven by their configured commands.
        covered = {handler.name for handler in handlers}
        for spec in catalog:
            if spec.name not in covered:
                handlers.append(
                    CommandHandler(
                        spec.name,
                        spec.category,
                        commands.get(spec.name),
                        project_root,
                        timeout=command_timeout,
                    )
                )
        return handlers

    def goal_predicate(self) -> Optional[Callable[[], bool]]:
        url = self.settings.goal_url()
        if not url or self.dry_run:
            return None
        timeout = self.settings.timeout("http_seconds")

        def _goal_reached() -> bool:
            try:
                return requests.get(url, timeout=timeout).status_code == 200
            except requests.RequestException as e:
                self.logger.debug("Goal URL %s not reachable: %s", url, e)
                return False

        return _goal_reached

    def build_trial_loop(self) -> TrialLoop:
        """
        Build every collaborator and the loop itself.

        Raises:
            ConfigurationError: On invalid settings.
        """
        config = self.settings.engine_config(max_trials=self.max_trials)
        self.catalog = self.settings.build_catalog()

        self.q_manager = QTableManager(
            file_path=self.settings.path("q_table"), alpha=config.alpha, gamma=config.gamma
        )
        if self.q_manager.load_q_table():
            self.logger.info(
                "Resuming from Q-table with %d states", self.q_manager.num_states
            )

        executor = ActionExecutor(self.catalog, self.build_handlers(self.catalog))
        probe = ReadinessProbe(
            project_root=self.settings.path("project_root"),
            markers=self.settings.readiness_markers(),
        )

        self.trial_loop = TrialLoop(
            config=config,
            catalog=self.catalog,
            executor=executor,
            q_manager=self.q_manager,
            state_provider=probe,
            reward_function=RewardFunction(self.settings.reward_weights()),
            encoder=StateEncoder(include_trial_number=self.settings.include_trial_number()),
            rng=self.rng,
            goal_predicate=self.goal_predicate(),
            trial_log_path=self.settings.path("trial_log"),
            report_path=self.settings.path("report"),
            log_source=self.trace_handler.get_logs if self.trace_handler else None,
        )
        return self.trial_loop

    def execute(self) -> RunSummary:
        trial_loop = self.trial_loop or self.build_trial_loop()
        summary = trial_loop.run()
        self.logger.info(
            "Run finished: %d trials, %d successes, goal reached: %s",
            summary.trials,
            summary.successes,
            summary.goal_reached,
        )
        return summary


def remediq_run_pipeline(
    config_path: Optional[str] = None,
    dry_run: bool = False,
    max_trials: Optional[int] = None,
    trace_handler: Optional[TrialTraceLogger] = None,
) -> RunSummary:
    """Load settings and execute a full learning run."""
    settings = EngineSettings(config_path=config_path, preload=bool(config_path))
    orchestrator = RemediqTrialOrchestrator(
        settings=settings, dry_run=dry_run, max_trials=max_trials, trace_handler=trace_handler
    )
    return orchestrator.execute()
