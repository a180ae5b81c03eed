"""
Unit tests for Config loading.

Each test patches the environment, reloads Config and restores the
original values afterwards.
"""

from pathlib import Path

import pytest

from leaderboard.core.config.config import Config


@pytest.fixture
def reload_config(monkeypatch):
    """Reload Config after the test with the unpatched environment."""
    validated = Config._validated
    yield monkeypatch
    monkeypatch.undo()
    Config._validated = validated
    Config.load()


class TestDefaults:
    def test_database_defaults(self, reload_config):
        for key in ("DATABASE_PATH", "DATABASE_POOL_SIZE", "DATABASE_POOL_TIMEOUT"):
            reload_config.delenv(key, raising=False)

        Config.load()

        assert Config.DATABASE_PATH == str(Config.PROJECT_ROOT / "data" / "score.db")
        assert Config.DATABASE_POOL_SIZE == 5
        assert Config.DATABASE_POOL_TIMEOUT == 30

    def test_api_defaults(self, reload_config):
        for key in ("API_HOST", "API_PORT", "CORS_ALLOW_ORIGINS"):
            reload_config.delenv(key, raising=False)

        Config.load()

        assert Config.API_HOST == "0.0.0.0"
        assert Config.API_PORT == 8080
        assert Config.CORS_ALLOW_ORIGINS == ["*"]


class TestEnvironmentParsing:
    """Test type-safe parsing with fallback to defaults."""

    def test_integer_from_env(self, reload_config):
        reload_config.setenv("DATABASE_POOL_SIZE", "12")

        Config.load()

        assert Config.DATABASE_POOL_SIZE == 12

    def test_invalid_integer_falls_back(self, reload_config):
        reload_config.setenv("DATABASE_POOL_SIZE", "many")

        Config.load()

        assert Config.DATABASE_POOL_SIZE == 5
        assert "DATABASE_POOL_SIZE" in Config.load_warnings

    def test_out_of_range_integer_falls_back(self, reload_config):
        reload_config.setenv("API_PORT", "70000")

        Config.load()

        assert Config.API_PORT == 8080

    @pytest.mark.parametrize("raw, expected", [("yes", True), ("ON", True), ("0", False), ("off", False)])
    def test_boolean_forms(self, reload_config, raw, expected):
        reload_config.setenv("DATABASE_ECHO", raw)

        Config.load()

        assert Config.DATABASE_ECHO is expected

    def test_list_drops_blank_items(self, reload_config):
        reload_config.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example,,")

        Config.load()

        assert Config.CORS_ALLOW_ORIGINS == ["https://a.example", "https://b.example"]

    def test_relative_path_resolved_against_project_root(self, reload_config):
        reload_config.setenv("DATABASE_PATH", "var/board.db")

        Config.load()

        assert Path(Config.DATABASE_PATH) == Config.PROJECT_ROOT / "var" / "board.db"

    def test_absolute_path_kept(self, reload_config, tmp_path):
        target = tmp_path / "board.db"
        reload_config.setenv("DATABASE_PATH", str(target))

        Config.load()

        assert Config.DATABASE_PATH == str(target)


class TestValidate:
    def test_default_limit_clamped_to_max(self, reload_config, tmp_path):
        reload_config.setenv("DATABASE_PATH", str(tmp_path / "db" / "score.db"))
        reload_config.setenv("LEADERBOARD_DEFAULT_LIMIT", "50")
        reload_config.setenv("LEADERBOARD_MAX_LIMIT", "20")
        Config._validated = False
        Config.load()

        Config.validate()

        assert Config.LEADERBOARD_DEFAULT_LIMIT == 20
        assert (tmp_path / "db").is_dir()

    def test_invalid_log_level_replaced(self, reload_config, tmp_path):
        reload_config.setenv("DATABASE_PATH", str(tmp_path / "score.db"))
        reload_config.setenv("LOG_LEVEL", "chatty")
        Config._validated = False
        Config.load()

        Config.validate()

        assert Config.LOG_LEVEL == "INFO"

    def test_production_rejects_load_warnings(self, reload_config, tmp_path):
        reload_config.setenv("DATABASE_PATH", str(tmp_path / "score.db"))
        reload_config.setenv("ENVIRONMENT", "production")
        reload_config.setenv("API_PORT", "not-a-port")
        Config._validated = False
        Config.load()

        with pytest.raises(ValueError, match="API_PORT"):
            Config.validate()

        assert Config._validated is False

    def test_production_allows_wildcard_cors(self, reload_config, tmp_path):
        reload_config.setenv("DATABASE_PATH", str(tmp_path / "score.db"))
        reload_config.setenv("ENVIRONMENT", "production")
        reload_config.delenv("CORS_ALLOW_ORIGINS", raising=False)
        Config._validated = False
        Config.load()

        Config.validate()

        assert Config._validated is True


class TestEnvironment:
    def test_testing_under_pytest(self):
        assert Config.ENVIRONMENT == "testing"
        assert Config.is_production() is False

    def test_environment_lowercased(self, reload_config):
        reload_config.setenv("ENVIRONMENT", "PRODUCTION")

        Config.load()

        assert Config.is_production() is True

    def test_config_summary_keys(self):
        summary = Config.get_config_summary()

        assert summary["database_pool_size"] == Config.DATABASE_POOL_SIZE
        assert "api_port" in summary
