"""Unit tests for the configuration module."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from hub_updater.config import DeployConfig, Settings, get_settings


def _make_settings(**overrides) -> Settings:
    """Create a Settings instance isolated from any .env file."""
    return Settings(_env_file=None, **overrides)


class TestSettingsDefaults:
    """Defaults match the stock Claude Code Hub deployment."""

    def test_image_defaults(self):
        settings = _make_settings()
        assert settings.image_tag == "claude-code-hub:local"
        assert settings.registry_image == "ghcr.io/ding113/claude-code-hub"
        assert settings.dockerfile == "deploy/Dockerfile"

    def test_deployment_defaults(self):
        settings = _make_settings()
        assert settings.compose_filename == "docker-compose.yaml"
        assert settings.app_service == "app"
        assert settings.version_file == "VERSION"
        assert settings.default_version == "dev"

    def test_health_defaults(self):
        settings = _make_settings()
        assert settings.health_max_attempts == 12
        assert settings.health_interval_seconds == 5.0

    def test_logging_defaults(self):
        settings = _make_settings()
        assert settings.log_level == "INFO"
        assert settings.log_format == "console"


class TestSettingsFromEnvironment:
    """Settings are read from HUB_UPDATER_* variables."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("HUB_UPDATER_APP_SERVICE", "web")
        monkeypatch.setenv("HUB_UPDATER_HEALTH_MAX_ATTEMPTS", "3")
        settings = _make_settings()
        assert settings.app_service == "web"
        assert settings.health_max_attempts == 3

    def test_unprefixed_variables_ignored(self, monkeypatch):
        monkeypatch.setenv("APP_SERVICE", "web")
        assert _make_settings().app_service == "app"


class TestSettingsValidation:
    def test_zero_attempts_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(health_max_attempts=0)

    def test_negative_interval_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(health_interval_seconds=-1)

    def test_unknown_log_format_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(log_format="xml")

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(build_timeout_seconds=0)


class TestGetSettings:
    def test_cached(self):
        assert get_settings() is get_settings()


class TestDeployConfig:
    def test_is_immutable(self, tmp_path: Path):
        config = DeployConfig(deploy_dir=tmp_path, source_dir=tmp_path)
        with pytest.raises(AttributeError):
            config.no_cache = True  # type: ignore[misc]

    def test_defaults(self, tmp_path: Path):
        config = DeployConfig(deploy_dir=tmp_path, source_dir=tmp_path)
        assert config.platform is None
        assert config.no_cache is False
        assert config.skip_pull is False

    def test_compose_file(self, tmp_path: Path):
        config = DeployConfig(deploy_dir=tmp_path, source_dir=tmp_path)
        assert config.compose_file(_make_settings()) == tmp_path / "docker-compose.yaml"
