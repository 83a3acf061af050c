import json
import random

import pytest

from remediq.adapters.fake import FakeActionHandler, RaisingActionHandler, fake_handlers_for
from remediq.core.actions.catalog import ActionCatalog
from remediq.core.actions.executor import ActionExecutor
from remediq.core.entities.engine import ActionCategory, ActionSpec, EngineConfig
from remediq.core.errors import ConfigurationError, PersistenceError
from remediq.core.pipelines.trial.trial_log import TrialLogWriter
from remediq.core.pipelines.trial.trial_loop import LoopPhase, TrialLoop
from remediq.core.q_table.q_table_manager import QTableManager


def deployment_catalog():
    return ActionCatalog(
        [
            ActionSpec(name="deploy-vercel-production", category=ActionCategory.DEPLOYMENT),
            ActionSpec(name="deploy-github-pages", category=ActionCategory.DEPLOYMENT),
        ],
        category_weights={"deployment": 3},
    )


def ticking_clock(step_seconds):
    """Clock that advances `step_seconds` on every reading."""
    state = {"now": 0.0}

    def _clock():
        state["now"] += step_seconds
        return state["now"]

    return _clock


class TestSingleTrial:
    def test_not_configured_failure(self, make_loop, catalog, q_manager):
        loop = make_loop(catalog)
        record = loop.run_trial()

        assert record.trial == 1
        assert not record.success
        assert record.reward == -5.0
        assert record.epsilon == 1.0
        assert loop.consecutive_failures == 1
        assert loop.epsilon == pytest.approx(0.998)
        assert q_manager.num_entries == 1
        assert q_manager.get_q_table() == {
            next(iter(q_manager.get_q_table())): {record.action: pytest.approx(-0.5)}
        }

    def test_fast_deployment_success(self, make_loop, succeeding_handlers, q_manager):
        catalog = deployment_catalog()
        loop = make_loop(catalog, handlers=succeeding_handlers(catalog), clock=ticking_clock(0.05))
        loop.consecutive_failures = 3

        record = loop.run_trial()

        assert record.success
        assert record.duration_ms == 50
        assert record.reward == 10 + 8 + 2
        assert loop.consecutive_failures == 0
        assert record.consecutive_failures == 0

    def test_state_key_carries_last_action(self, make_loop, catalog):
        loop = make_loop(catalog)
        record = loop.run_trial()
        state = json.loads(loop.current_state())
        assert state["last_action"] == record.action
        assert state["failures"] == 1

    def test_probe_failure_falls_back_to_defaults(self, make_loop, catalog, caplog):
        loop = make_loop(catalog)

        def broken_probe():
            raise OSError("permission denied")

        loop.state_provider = broken_probe
        state = json.loads(loop.current_state())
        assert state["github"] == "not-configured"
        assert "Readiness probe failed" in caplog.text

    def test_raising_handler_does_not_stop_the_loop(self, make_loop, small_catalog):
        handlers = [
            RaisingActionHandler(spec.name, spec.category, RuntimeError("adapter crashed"))
            for spec in small_catalog
        ]
        loop = make_loop(small_catalog, handlers=handlers, max_trials=3)
        summary = loop.run()
        assert summary.trials == 3
        assert summary.successes == 0
        assert all(r.error == "adapter crashed" for r in loop.records)


class TestRun:
    def test_respects_trial_budget_and_backoff(self, make_loop, catalog, sleeps):
        loop = make_loop(catalog, max_trials=4, base_delay_ms=100, max_delay_ms=10_000, jitter=0.0)
        summary = loop.run()

        assert summary.trials == 4
        assert loop.phase == LoopPhase.TERMINAL
        # No wait after the last trial; streak 1, 2, 3 doubles the delay.
        assert sleeps == [pytest.approx(0.2), pytest.approx(0.4), pytest.approx(0.8)]

    def test_epsilon_decays_every_trial(self, make_loop, catalog):
        loop = make_loop(catalog, max_trials=10, epsilon_decay=0.9, min_epsilon=0.5)
        loop.run()
        epsilons = [r.epsilon for r in loop.records]
        for before, after in zip(epsilons, epsilons[1:]):
            assert after == pytest.approx(max(0.5, before * 0.9))
        assert loop.epsilon >= 0.5

    def test_zero_trials(self, make_loop, catalog, tmp_path):
        loop = make_loop(catalog, max_trials=0)
        summary = loop.run()
        assert summary.trials == 0
        assert summary.q_table_saved
        assert loop.report.summary.total_trials == 0
        assert (tmp_path / "q_table.json").exists()

    def test_goal_stops_run_early(self, make_loop, small_catalog, succeeding_handlers):
        loop = make_loop(small_catalog, handlers=succeeding_handlers(small_catalog), max_trials=10)
        loop.goal_predicate = lambda: len(loop.records) >= 2
        summary = loop.run()
        assert summary.goal_reached
        assert summary.trials == 2
        assert loop.report.goal_reached

    def test_goal_not_checked_after_failure(self, make_loop, catalog, mocker):
        loop = make_loop(catalog, max_trials=3)
        goal = mocker.Mock(return_value=True)
        loop.goal_predicate = goal
        summary = loop.run()
        assert not summary.goal_reached
        goal.assert_not_called()

    def test_interrupt_still_persists(self, make_loop, small_catalog, tmp_path):
        handlers = fake_handlers_for(small_catalog)
        loop = make_loop(small_catalog, handlers=handlers, max_trials=10)

        def interrupt(_seconds):
            raise KeyboardInterrupt

        loop.sleep = interrupt
        summary = loop.run()

        assert summary.interrupted
        assert summary.trials == 1
        assert (tmp_path / "q_table.json").exists()
        assert len(TrialLogWriter(str(tmp_path / "trial_log.json")).load()) == 1

    def test_checkpoint_interval(self, make_loop, catalog, mocker):
        loop = make_loop(catalog, max_trials=7, checkpoint_interval=3)
        checkpoint = mocker.spy(loop, "checkpoint")
        loop.run()
        assert checkpoint.call_count == 2

    def test_outputs_written(self, make_loop, catalog, tmp_path):
        make_loop(catalog, max_trials=3).run()
        records = TrialLogWriter(str(tmp_path / "trial_log.json")).load(strict=True)
        assert [r.trial for r in records] == [1, 2, 3]
        with open(tmp_path / "report.json", encoding="utf-8") as f:
            report = json.load(f)
        assert report["summary"]["total_trials"] == 3
        assert report["parameters"]["max_trials"] == 3

    def test_captured_logs_land_in_report(self, make_loop, catalog):
        loop = make_loop(catalog)
        loop.log_source = lambda: [{"type": "WARNING", "description": "probe slow", "payload": {}, "timestamp": "t"}]
        loop.run()
        assert loop.report.logs[0]["description"] == "probe slow"

    def test_learning_resumes_from_saved_table(self, tmp_path, small_catalog, succeeding_handlers):
        path = str(tmp_path / "q.json")
        config = EngineConfig(max_trials=5, initial_epsilon=0.0, min_epsilon=0.0, base_delay_ms=0, jitter=0.0)

        def fresh_loop():
            manager = QTableManager(path)
            manager.load_q_table()
            executor = ActionExecutor(small_catalog, succeeding_handlers(small_catalog))
            return TrialLoop(config, small_catalog, executor, manager, rng=random.Random(0), sleep=lambda s: None)

        fresh_loop().run()
        second = fresh_loop()
        assert second.q_manager.num_entries > 0


class TestBackoff:
    @pytest.mark.parametrize("failures", [0, 1, 3, 5, 6, 50])
    def test_delay_never_exceeds_max(self, make_loop, catalog, failures):
        loop = make_loop(catalog, base_delay_ms=500, max_delay_ms=10_000, jitter=1.0)
        for _ in range(50):
            assert loop.compute_delay(failures) <= 10_000

    def test_exponent_is_capped(self, make_loop, catalog):
        loop = make_loop(catalog, base_delay_ms=10, max_delay_ms=100_000, jitter=0.0)
        assert loop.compute_delay(5) == loop.compute_delay(12) == 320

    def test_jitter_bounds(self, make_loop, catalog):
        loop = make_loop(catalog, base_delay_ms=100, max_delay_ms=100_000, jitter=0.1)
        for _ in range(50):
            assert 100 <= loop.compute_delay(0) <= 110


class TestConstruction:
    def test_rejects_non_config(self, small_catalog, q_manager):
        with pytest.raises(ConfigurationError):
            TrialLoop({"alpha": 0.1}, small_catalog, ActionExecutor(small_catalog), q_manager)

    def test_takes_alpha_gamma_from_config(self, small_catalog, q_manager):
        config = EngineConfig(alpha=0.4, gamma=0.6)
        TrialLoop(config, small_catalog, ActionExecutor(small_catalog), q_manager)
        assert (q_manager.alpha, q_manager.gamma) == (0.4, 0.6)

    def test_invalid_config_values(self):
        with pytest.raises(ConfigurationError, match="alpha"):
            EngineConfig.from_mapping({"alpha": 0})
        with pytest.raises(ConfigurationError, match="max_trials"):
            EngineConfig.from_mapping({}, max_trials=-1)
        with pytest.raises(ConfigurationError):
            EngineConfig.from_mapping({"learning_rate": 0.3})

    def test_missing_handlers_are_logged(self, small_catalog, q_manager, caplog):
        executor = ActionExecutor(small_catalog, [FakeActionHandler("test-a", ActionCategory.TESTING)])
        TrialLoop(EngineConfig(), small_catalog, executor, q_manager)
        assert "No handler registered for action 'deploy-a'" in caplog.text


class TestTrialLog:
    def test_undecodable_log_is_empty_when_lenient(self, tmp_path, caplog):
        path = tmp_path / "trial_log.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert TrialLogWriter(str(path)).load() == []
        assert "treating it as empty" in caplog.text

    def test_undecodable_log_raises_persistence_error_when_strict(self, tmp_path):
        path = tmp_path / "trial_log.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(PersistenceError):
            TrialLogWriter(str(path)).load(strict=True)
