import json

from remediq.core.entities.state import DIMENSION_LEVELS, StateSnapshot
from remediq.core.q_table.state_encoder import StateEncoder


class TestEncode:
    def test_equal_snapshots_give_identical_keys(self):
        encoder = StateEncoder()
        s1 = StateSnapshot(github="fully-configured", trial_number=3, last_action="test-github-connection")
        s2 = StateSnapshot(github="fully-configured", trial_number=3, last_action="test-github-connection")
        assert encoder.encode(s1) == encoder.encode(s2)

    def test_different_snapshots_give_different_keys(self):
        encoder = StateEncoder()
        assert encoder.encode(StateSnapshot()) != encoder.encode(StateSnapshot(stripe="partially-configured"))

    def test_field_order_is_fixed(self):
        key = StateEncoder().encode(StateSnapshot(trial_number=2, consecutive_failures=1))
        assert list(json.loads(key)) == ["trial", "failures", "last_action"] + list(DIMENSION_LEVELS)

    def test_key_is_compact(self):
        key = StateEncoder().encode(StateSnapshot())
        assert " " not in key

    def test_trial_number_can_be_left_out(self):
        encoder = StateEncoder(include_trial_number=False)
        assert encoder.encode(StateSnapshot(trial_number=1)) == encoder.encode(StateSnapshot(trial_number=9))
        assert "trial" not in json.loads(encoder.encode(StateSnapshot()))

    def test_mapping_input_matches_snapshot_input(self):
        encoder = StateEncoder()
        mapping = {"vercel": "fully-configured", "trial_number": 4, "last_action": "deploy-github-pages"}
        snapshot = StateSnapshot(vercel="fully-configured", trial_number=4, last_action="deploy-github-pages")
        assert encoder.encode(mapping) == encoder.encode(snapshot)


class TestSnapshotFromMapping:
    def test_missing_dimensions_default_to_not_level(self):
        snapshot = StateEncoder().snapshot_from_mapping({})
        for dimension, levels in DIMENSION_LEVELS.items():
            assert getattr(snapshot, dimension) == levels[0]

    def test_unknown_value_falls_back_with_warning(self, caplog):
        snapshot = StateEncoder().snapshot_from_mapping({"deployment": "on-fire"})
        assert snapshot.deployment == "not-deployed"
        assert "unknown value" in caplog.text

    def test_none_readiness_is_accepted(self):
        snapshot = StateEncoder().snapshot_from_mapping(None, trial_number=2)
        assert snapshot.trial_number == 2
        assert snapshot.github == "not-configured"

    def test_bad_counters_are_clamped(self):
        snapshot = StateEncoder().snapshot_from_mapping({}, trial_number=-3, consecutive_failures="x")
        assert snapshot.trial_number == 0
        assert snapshot.consecutive_failures == 0

    def test_empty_last_action_becomes_none(self):
        assert StateEncoder().snapshot_from_mapping({}, last_action=None).last_action == "none"
