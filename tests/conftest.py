"""
Shared fixtures for the remediq test suite.
"""
import random

import pytest

from remediq.adapters.fake import FakeActionHandler, fake_handlers_for
from remediq.core.actions.catalog import ActionCatalog, default_catalog
from remediq.core.actions.executor import ActionExecutor
from remediq.core.entities.engine import ActionCategory, ActionSpec, EngineConfig
from remediq.core.pipelines.trial.trial_loop import TrialLoop
from remediq.core.q_table.q_table_manager import QTableManager

CREDENTIAL_KEYS = [
    "GITHUB_TOKEN",
    "VERCEL_TOKEN",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "STRIPE_SECRET_KEY",
]


@pytest.fixture(autouse=True)
def clean_credentials(monkeypatch):
    """Service credentials from the developer's shell must not leak into tests."""
    for key in CREDENTIAL_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def small_catalog():
    return ActionCatalog(
        [
            ActionSpec(name="configure-a", category=ActionCategory.CONFIGURATION),
            ActionSpec(name="test-a", category=ActionCategory.TESTING),
            ActionSpec(name="deploy-a", category=ActionCategory.DEPLOYMENT),
        ]
    )


@pytest.fixture
def q_manager(tmp_path):
    return QTableManager(file_path=str(tmp_path / "q_table.json"))


@pytest.fixture
def sleeps():
    """Records requested sleep durations instead of sleeping."""
    return []


@pytest.fixture
def make_loop(tmp_path, q_manager, sleeps):
    """Factory for a TrialLoop with fake handlers, no real sleeping and files under tmp_path."""

    def _make(catalog, handlers=None, clock=None, seed=7, **config_overrides):
        config = EngineConfig(**{"initial_epsilon": 1.0, "max_trials": 1, **config_overrides})
        if handlers is None:
            handlers = fake_handlers_for(catalog)
        executor_kwargs = {"clock": clock} if clock is not None else {}
        executor = ActionExecutor(catalog, handlers, **executor_kwargs)
        return TrialLoop(
            config=config,
            catalog=catalog,
            executor=executor,
            q_manager=q_manager,
            rng=random.Random(seed),
            sleep=sleeps.append,
            trial_log_path=str(tmp_path / "trial_log.json"),
            report_path=str(tmp_path / "report.json"),
        )

    return _make


@pytest.fixture
def succeeding_handlers():
    def _make(catalog):
        return [FakeActionHandler(spec.name, spec.category, success=True) for spec in catalog]

    return _make
