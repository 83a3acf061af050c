import logging
import os
from importlib.resources import files
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from remediq.core.abstract.integrations.base_config import BaseConfig
from remediq.core.actions.catalog import ActionCatalog, default_catalog
from remediq.core.entities.engine import EngineConfig
from remediq.core.errors import ConfigurationError
from remediq.core.rewards.reward_function import RewardWeights

logger = logging.getLogger(__name__)

DEFAULT_PATHS = {
    "project_root": ".",
    "q_table": ".remediq/q_table.json",
    "trial_log": ".remediq/trial_log.json",
    "report": ".remediq/analysis_report.json",
}

DEFAULT_TIMEOUTS = {
    "http_seconds": 15.0,
    "command_seconds": 300.0,
}

TEMPLATE_FILE = "remediq_config.yml"

KNOWN_SECTIONS = {
    "project_name", "engine", "state", "paths", "categories", "actions",
    "rewards", "commands", "timeouts", "readiness", "goal",
}


class EngineSettings(BaseConfig):
    """
    YAML-backed settings for a remediq run.

    Sections:
      - engine: EngineConfig fields (alpha, gamma, epsilons, trial budget, delays).
      - state: encoder options.
      - paths: project_root, q_table, trial_log, report.
      - categories / actions: exploration weights and an optional custom catalog.
      - rewards: RewardWeights overrides.
      - commands: shell command per action for command-driven handlers.
      - timeouts: http_seconds, command_seconds.
      - readiness: marker overrides for the readiness probe.
      - goal: optional URL whose availability ends the run early.

    A settings object without a file behaves as if every section were empty,
    so all values fall back to their defaults.
    """

    def __init__(self, config_path: Optional[str] = None, preload: bool = False):
        super().__init__(config_path=config_path, preload=preload)
        # Service credentials (GITHUB_TOKEN, STRIPE_SECRET_KEY, ...) come from .env files
        load_dotenv()

    def engine_config(self, **overrides) -> EngineConfig:
        return EngineConfig.from_mapping(self._section("engine"), **overrides)

    def reward_weights(self) -> RewardWeights:
        return RewardWeights.from_mapping(self._section("rewards"))

    def category_weights(self) -> Dict[str, float]:
        return dict(self._section("categories"))

    def build_catalog(self) -> ActionCatalog:
        entries = self.get_value("actions")
        if entries:
            if not isinstance(entries, list):
                raise ConfigurationError("'actions' must be a list of {name, category} entries")
            return ActionCatalog.from_entries(entries, category_weights=self.category_weights())
        return default_catalog(category_weights=self.category_weights())

    def include_trial_number(self) -> bool:
        return bool(self._section("state").get("include_trial_number", True))

    def path(self, key: str) -> str:
        return str(self._section("paths").get(key, DEFAULT_PATHS.get(key, "")))

    def commands(self) -> Dict[str, str]:
        return {str(k): str(v) for k, v in self._section("commands").items() if v}

    def timeout(self, key: str) -> float:
        value = self._section("timeouts").get(key, DEFAULT_TIMEOUTS[key])
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid timeout '{key}': {value!r}") from e

    def readiness_markers(self) -> Dict[str, List[str]]:
        markers = self._section("readiness").get("markers") or {}
        return {str(k): list(v or []) for k, v in markers.items()}

    def goal_url(self) -> Optional[str]:
        return self._section("goal").get("url") or None

    def _section(self, name: str) -> Dict[str, Any]:
        value = self.get_value(name, {})
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigurationError(f"Configuration section '{name}' must be a mapping")
        return value

    def _validate_config(self) -> Tuple[bool, str]:
        """
        Validate every section by building the objects it describes.

        Returns:
            Tuple[bool, str]: Validity and a message.
        """
        unknown = sorted(set(self.config) - KNOWN_SECTIONS)
        if unknown:
            return False, f"❌ Unknown configuration sections: {', '.join(unknown)}"

        try:
            self.engine_config()
            self.reward_weights()
            catalog = self.build_catalog()
            for key in DEFAULT_TIMEOUTS:
                self.timeout(key)
            self._section("paths")
            self._section("readiness")
        except ConfigurationError as e:
            return False, f"❌ {e}"

        unknown_commands = sorted(set(self.commands()) - set(catalog.names))
        if unknown_commands:
            return False, f"❌ Commands configured for unknown actions: {', '.join(unknown_commands)}"

        return True, "✅ Configuration is valid"

    def create_project_template(self, base_path: str = ".") -> Tuple[bool, str]:
        if not base_path:
            return False, "❌ Error: Base path not provided. Please specify a base path."

        target = os.path.join(base_path, TEMPLATE_FILE)
        if os.path.exists(target):
            return False, f"❌ Error: Configuration already exists at '{target}'"

        try:
            os.makedirs(base_path, exist_ok=True)
            content = files("remediq.templates").joinpath(TEMPLATE_FILE).read_text(encoding="utf-8")
            with open(target, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            return False, f"❌ Error creating template: {e}"

        self.config_path = target
        return True, f"✅ Configuration template created at '{target}'"
