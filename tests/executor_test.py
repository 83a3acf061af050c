from remediq.adapters.fake import FakeActionHandler, RaisingActionHandler
from remediq.core.actions.executor import UNKNOWN_ACTION, ActionExecutor
from remediq.core.entities.engine import ActionCategory


def fixed_clock(*readings):
    values = iter(readings)
    return lambda: next(values)


class TestExecute:
    def test_success(self, small_catalog):
        handler = FakeActionHandler("deploy-a", ActionCategory.DEPLOYMENT, success=True)
        executor = ActionExecutor(small_catalog, [handler], clock=fixed_clock(1.0, 1.05))

        outcome = executor.execute("deploy-a")

        assert outcome.success
        assert outcome.error is None
        assert outcome.category == ActionCategory.DEPLOYMENT
        assert outcome.duration_ms == 50
        assert handler.calls == 1

    def test_reported_failure(self, small_catalog):
        handler = FakeActionHandler("test-a", ActionCategory.TESTING, success=False, error="not configured")
        outcome = ActionExecutor(small_catalog, [handler]).execute("test-a")
        assert not outcome.success
        assert outcome.error == "not configured"

    def test_raising_handler_becomes_failure(self, small_catalog):
        handler = RaisingActionHandler("deploy-a", ActionCategory.DEPLOYMENT, RuntimeError("boom"))
        outcome = ActionExecutor(small_catalog, [handler]).execute("deploy-a")
        assert not outcome.success
        assert outcome.error == "boom"
        assert outcome.details["exception"] == "RuntimeError"

    def test_exception_without_message_still_has_error(self, small_catalog):
        handler = RaisingActionHandler("deploy-a", ActionCategory.DEPLOYMENT, TimeoutError())
        outcome = ActionExecutor(small_catalog, [handler]).execute("deploy-a")
        assert outcome.error == "TimeoutError"

    def test_non_mapping_result_is_failure(self, small_catalog, mocker):
        handler = FakeActionHandler("deploy-a", ActionCategory.DEPLOYMENT)
        mocker.patch.object(handler, "run", return_value=True)
        outcome = ActionExecutor(small_catalog, [handler]).execute("deploy-a")
        assert not outcome.success
        assert "expected a mapping" in outcome.error

    def test_unknown_action(self, small_catalog):
        outcome = ActionExecutor(small_catalog).execute("launch-rocket")
        assert not outcome.success
        assert outcome.error == UNKNOWN_ACTION
        assert outcome.category is None

    def test_catalog_action_without_handler(self, small_catalog):
        outcome = ActionExecutor(small_catalog).execute("configure-a")
        assert outcome.error == UNKNOWN_ACTION
        assert outcome.category == ActionCategory.CONFIGURATION

    def test_failure_without_error_message(self, small_catalog):
        handler = FakeActionHandler("test-a", ActionCategory.TESTING, outcomes=[{"success": False}])
        outcome = ActionExecutor(small_catalog, [handler]).execute("test-a")
        assert not outcome.success
        assert outcome.error is None

    def test_only_boolean_true_counts_as_success(self, small_catalog):
        handler = FakeActionHandler(
            "test-a", ActionCategory.TESTING, outcomes=[{"success": "false"}, {"success": 1}]
        )
        executor = ActionExecutor(small_catalog, [handler])
        assert not executor.execute("test-a").success
        assert not executor.execute("test-a").success


class TestRegistry:
    def test_validate_reports_missing_handlers(self, small_catalog, caplog):
        handler = FakeActionHandler("deploy-a", ActionCategory.DEPLOYMENT)
        executor = ActionExecutor(small_catalog, [handler])
        assert executor.validate() == ["configure-a", "test-a"]
        assert "No handler registered for action 'configure-a'" in caplog.text

    def test_validate_flags_handlers_outside_catalog(self, small_catalog, caplog):
        extra = FakeActionHandler("stray", ActionCategory.TOOLING)
        ActionExecutor(small_catalog, [extra]).validate()
        assert "'stray' is registered but the action is not in the catalog" in caplog.text

    def test_register_replaces(self, small_catalog):
        first = FakeActionHandler("test-a", ActionCategory.TESTING, success=False, error="x")
        second = FakeActionHandler("test-a", ActionCategory.TESTING, success=True)
        executor = ActionExecutor(small_catalog, [first])
        executor.register(second)
        assert executor.handler_for("test-a") is second
        assert executor.execute("test-a").success
