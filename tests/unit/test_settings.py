"""
Unit tests for configuration loading.
"""

import pytest

from config.settings import (
    QueryPolicyConfig,
    Settings,
    get_default_config_path,
    load_config,
)


class TestSettings:
    """Tests for the Settings dataclass."""

    def test_defaults(self):
        settings = Settings()

        assert settings.scans_enabled is False
        assert settings.send_key is True
        assert settings.log_level == "INFO"
        assert settings.query_policy == QueryPolicyConfig()

    def test_from_dict(self):
        settings = Settings.from_dict({
            "scans_enabled": True,
            "query_policy": {"max_records": 10},
        })

        assert settings.scans_enabled is True
        assert settings.query_policy.max_records == 10
        assert settings.query_policy.total_timeout_ms == 0

    def test_dict_round_trip(self):
        settings = Settings(log_level="DEBUG", query_policy=QueryPolicyConfig(5, 6))
        assert Settings.from_dict(settings.to_dict()) == settings

    def test_unknown_key(self):
        with pytest.raises(TypeError):
            Settings.from_dict({"scan_enabled": True})


class TestEnvironment:
    """BINQUERY_* overrides."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BINQUERY_SCANS_ENABLED", "true")
        monkeypatch.setenv("BINQUERY_LOG_LEVEL", "WARNING")

        settings = Settings.from_env()

        assert settings.scans_enabled is True
        assert settings.log_level == "WARNING"

    def test_with_env_keeps_file_values(self, monkeypatch):
        monkeypatch.setenv("BINQUERY_SEND_KEY", "0")
        base = Settings(query_policy=QueryPolicyConfig(max_records=3))

        settings = base.with_env()

        assert settings.send_key is False
        assert settings.query_policy.max_records == 3
        assert base.send_key is True

    def test_invalid_bool(self, monkeypatch):
        monkeypatch.setenv("BINQUERY_SCANS_ENABLED", "maybe")
        with pytest.raises(ValueError):
            Settings.from_env()


class TestLoadConfig:
    """YAML loading."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "binquery.yaml"
        path.write_text(
            "scans_enabled: true\n"
            "log_level: DEBUG\n"
            "query_policy:\n"
            "  total_timeout_ms: 250\n"
        )

        settings = load_config(str(path))

        assert settings.scans_enabled is True
        assert settings.log_level == "DEBUG"
        assert settings.query_policy.total_timeout_ms == 250

    def test_missing_file(self, tmp_path):
        assert load_config(str(tmp_path / "absent.yaml")) == Settings()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == Settings()

    def test_default_config_path_env(self, monkeypatch, tmp_path):
        path = tmp_path / "custom.yaml"
        monkeypatch.setenv("BINQUERY_CONFIG", str(path))
        assert get_default_config_path() == path

    def test_bundled_default(self, monkeypatch, tmp_path):
        monkeypatch.delenv("BINQUERY_CONFIG", raising=False)
        monkeypatch.chdir(tmp_path)

        path = get_default_config_path()

        assert path.name == "default_config.yaml"
        assert load_config(str(path)) == Settings()
