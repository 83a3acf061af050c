import pytest
import yaml

from remediq.config import DEFAULT_PATHS, TEMPLATE_FILE, EngineSettings
from remediq.core.errors import ConfigurationError


def write_config(tmp_path, data, name="remediq_config.yml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


class TestDefaults:
    def test_no_file_gives_defaults(self):
        settings = EngineSettings()
        config = settings.engine_config()
        assert (config.alpha, config.gamma, config.max_trials) == (0.1, 0.9, 30)
        assert settings.path("q_table") == DEFAULT_PATHS["q_table"]
        assert settings.timeout("http_seconds") == 15.0
        assert settings.commands() == {}
        assert settings.goal_url() is None
        assert len(settings.build_catalog()) == 28

    def test_missing_file_with_preload(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EngineSettings(config_path=str(tmp_path / "nope.yml"), preload=True)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            EngineSettings(config_path=str(path), preload=True)


class TestSections:
    def test_engine_section_and_overrides(self, tmp_path):
        settings = EngineSettings(write_config(tmp_path, {"engine": {"alpha": 0.5, "max_trials": 12}}), preload=True)
        assert settings.engine_config().alpha == 0.5
        assert settings.engine_config(max_trials=3).max_trials == 3
        assert settings.engine_config(max_trials=None).max_trials == 12

    def test_invalid_engine_values(self, tmp_path):
        settings = EngineSettings(write_config(tmp_path, {"engine": {"gamma": 2}}), preload=True)
        with pytest.raises(ConfigurationError):
            settings.engine_config()

    def test_custom_catalog(self, tmp_path):
        data = {
            "actions": [{"name": "lint", "category": "tooling"}, {"name": "smoke", "category": "testing"}],
            "categories": {"tooling": 4},
        }
        catalog = EngineSettings(write_config(tmp_path, data), preload=True).build_catalog()
        assert catalog.names == ("lint", "smoke")
        assert catalog.weight_of("lint") == 4.0

    def test_empty_commands_are_dropped(self, tmp_path):
        data = {"commands": {"deploy-github-pages": "npm run deploy", "deploy-vercel-production": ""}}
        settings = EngineSettings(write_config(tmp_path, data), preload=True)
        assert settings.commands() == {"deploy-github-pages": "npm run deploy"}

    def test_section_must_be_mapping(self, tmp_path):
        settings = EngineSettings(write_config(tmp_path, {"paths": ["a"]}), preload=True)
        with pytest.raises(ConfigurationError, match="paths"):
            settings.path("q_table")

    def test_readiness_markers(self, tmp_path):
        data = {"readiness": {"markers": {"resilience": ["src/health.ts"], "testing": None}}}
        markers = EngineSettings(write_config(tmp_path, data), preload=True).readiness_markers()
        assert markers == {"resilience": ["src/health.ts"], "testing": []}

    def test_set_value_dot_notation(self):
        settings = EngineSettings()
        settings.set_value("engine.max_trials", 4)
        assert settings.get_value("engine.max_trials") == 4
        assert settings.engine_config().max_trials == 4


class TestValidate:
    def test_template_is_valid(self, tmp_path):
        settings = EngineSettings()
        created, msg = settings.create_project_template(base_path=str(tmp_path))
        assert created, msg

        loaded = EngineSettings(config_path=str(tmp_path / TEMPLATE_FILE), preload=True)
        is_valid, msg = loaded.validate_config()
        assert is_valid, msg

    def test_template_not_overwritten(self, tmp_path):
        EngineSettings().create_project_template(base_path=str(tmp_path))
        created, msg = EngineSettings().create_project_template(base_path=str(tmp_path))
        assert not created
        assert "already exists" in msg

    def test_unknown_section(self, tmp_path):
        settings = EngineSettings(write_config(tmp_path, {"enigne": {}}), preload=True)
        is_valid, msg = settings.validate_config()
        assert not is_valid
        assert "enigne" in msg

    def test_command_for_unknown_action(self, tmp_path):
        settings = EngineSettings(write_config(tmp_path, {"commands": {"make-coffee": "brew"}}), preload=True)
        is_valid, msg = settings.validate_config()
        assert not is_valid
        assert "make-coffee" in msg

    @pytest.mark.parametrize(
        "data",
        [
            {"engine": {"checkpoint_interval": 0}},
            {"rewards": {"fast_ms": -1}},
            {"categories": {"testing": -2}},
            {"timeouts": {"http_seconds": "soon"}},
            {"actions": "all of them"},
        ],
    )
    def test_invalid_sections(self, tmp_path, data):
        is_valid, msg = EngineSettings(write_config(tmp_path, data), preload=True).validate_config()
        assert not is_valid
        assert msg.startswith("❌")
