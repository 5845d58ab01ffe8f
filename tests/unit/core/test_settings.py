"""Tests for eventgate configuration management."""

from pathlib import Path

import pytest

from eventgate.core.settings import (
    BufferSettings,
    EventGateSettings,
    LoggingSettings,
    _find_config_file,
    _load_yaml_config,
    get_cached_settings,
    get_settings,
)
from eventgate.protocol import IdentityComparison


class TestEventGateSettings:
    """Tests for EventGateSettings class."""

    def test_default_values(self, isolated_settings: Path) -> None:
        """Test default configuration values."""
        settings = EventGateSettings(_skip_file_loading=True)

        assert settings.buffer.identity_comparison == IdentityComparison.ORDINAL
        assert settings.buffer.synchronized is False
        assert settings.logging.level == "INFO"
        assert settings.logging.json_output is False
        assert settings.logging.file is None

    def test_top_level_log_level_is_not_a_setting(
        self, isolated_settings: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that the log level lives only under the logging section."""
        monkeypatch.setenv("EVENTGATE_LOG_LEVEL", "DEBUG")

        settings = EventGateSettings(_skip_file_loading=True)

        assert "log_level" not in settings.to_dict()
        assert settings.logging.level == "INFO"

    def test_custom_values(self, isolated_settings: Path) -> None:
        """Test configuration with custom values."""
        settings = EventGateSettings(
            _skip_file_loading=True,
            logging={"level": "debug"},
            buffer={"identity_comparison": "casefold", "synchronized": True},
        )

        assert settings.logging.level == "DEBUG"
        assert settings.buffer.identity_comparison == IdentityComparison.CASEFOLD
        assert settings.buffer.synchronized is True

    def test_log_level_validation(self, isolated_settings: Path) -> None:
        """Test log level validation."""
        with pytest.raises(ValueError):
            EventGateSettings(_skip_file_loading=True, logging={"level": "LOUD"})

    def test_identity_comparison_validation(self, isolated_settings: Path) -> None:
        """Test that unknown comparison modes are refused."""
        with pytest.raises(ValueError):
            EventGateSettings(
                _skip_file_loading=True, buffer={"identity_comparison": "fuzzy"}
            )

    def test_env_variables(
        self, isolated_settings: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test configuration from environment variables."""
        monkeypatch.setenv("EVENTGATE_LOGGING__LEVEL", "WARNING")
        monkeypatch.setenv("EVENTGATE_BUFFER__SYNCHRONIZED", "true")
        monkeypatch.setenv("EVENTGATE_BUFFER__IDENTITY_COMPARISON", "casefold")

        settings = EventGateSettings(_skip_file_loading=True)

        assert settings.logging.level == "WARNING"
        assert settings.buffer.synchronized is True
        assert settings.buffer.identity_comparison == IdentityComparison.CASEFOLD

    def test_to_dict(self, isolated_settings: Path) -> None:
        """Test conversion to a plain dictionary."""
        result = EventGateSettings(_skip_file_loading=True).to_dict()

        assert result["buffer"] == {
            "identity_comparison": "ordinal",
            "synchronized": False,
        }
        assert result["logging"]["level"] == "INFO"


class TestNestedSettings:
    """Tests for nested settings groups."""

    def test_buffer_settings_defaults(self) -> None:
        """Test buffer settings defaults."""
        settings = BufferSettings()
        assert settings.identity_comparison == IdentityComparison.ORDINAL
        assert settings.synchronized is False

    def test_logging_settings_uppercases_level(self) -> None:
        """Test that log levels are normalized."""
        assert LoggingSettings(level="error").level == "ERROR"


class TestConfigFile:
    """Tests for YAML config file discovery and loading."""

    def test_find_config_file_in_parent(self, isolated_settings: Path) -> None:
        """Test that config files are found in parent directories."""
        config = isolated_settings / "eventgate.config.yaml"
        config.write_text("buffer:\n  synchronized: true\n")
        nested = isolated_settings / "a" / "b"
        nested.mkdir(parents=True)

        assert _find_config_file(nested) == config

    def test_find_config_file_yml(self, isolated_settings: Path) -> None:
        """Test the alternative extension."""
        config = isolated_settings / "eventgate.config.yml"
        config.write_text("buffer:\n  synchronized: true\n")

        assert _find_config_file(isolated_settings) == config

    def test_load_yaml_config_invalid(self, isolated_settings: Path) -> None:
        """Test that broken YAML yields an empty config."""
        config = isolated_settings / "broken.yaml"
        config.write_text("buffer: [unclosed\n")

        assert _load_yaml_config(config) == {}

    def test_load_yaml_config_not_a_mapping(self, isolated_settings: Path) -> None:
        """Test that non-mapping YAML yields an empty config."""
        config = isolated_settings / "list.yaml"
        config.write_text("- a\n- b\n")

        assert _load_yaml_config(config) == {}

    def test_load_yaml_config_missing(self, isolated_settings: Path) -> None:
        """Test that a missing file yields an empty config."""
        assert _load_yaml_config(isolated_settings / "missing.yaml") == {}

    def test_settings_loaded_from_discovered_file(
        self, isolated_settings: Path
    ) -> None:
        """Test that a config file in the working directory is applied."""
        (isolated_settings / "eventgate.config.yaml").write_text(
            "logging:\n  level: ERROR\nbuffer:\n  identity_comparison: casefold\n"
        )

        settings = EventGateSettings()

        assert settings.logging.level == "ERROR"
        assert settings.buffer.identity_comparison == IdentityComparison.CASEFOLD

    def test_env_overrides_file(
        self, isolated_settings: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that environment variables win over the config file."""
        (isolated_settings / "eventgate.config.yaml").write_text(
            "buffer:\n  identity_comparison: casefold\n  synchronized: false\n"
        )
        monkeypatch.setenv("EVENTGATE_BUFFER__SYNCHRONIZED", "true")

        settings = EventGateSettings()

        assert settings.buffer.synchronized is True
        assert settings.buffer.identity_comparison == IdentityComparison.CASEFOLD


class TestGetSettings:
    """Tests for get_settings and get_cached_settings."""

    def test_get_settings_overrides(self, isolated_settings: Path) -> None:
        """Test explicit overrides."""
        settings = get_settings(logging={"level": "DEBUG"})
        assert settings.logging.level == "DEBUG"

    def test_get_settings_with_config_file(self, isolated_settings: Path) -> None:
        """Test an explicit config file merged under overrides."""
        config = isolated_settings / "custom.yaml"
        config.write_text(
            "logging:\n  level: ERROR\nbuffer:\n  synchronized: true\n"
            "  identity_comparison: casefold\n"
        )

        settings = get_settings(
            config_file=config, buffer={"identity_comparison": "ordinal"}
        )

        assert settings.logging.level == "ERROR"
        assert settings.buffer.synchronized is True
        assert settings.buffer.identity_comparison == IdentityComparison.ORDINAL

    def test_get_settings_missing_config_file(self, isolated_settings: Path) -> None:
        """Test that a missing explicit config file is ignored."""
        settings = get_settings(config_file=isolated_settings / "nope.yaml")
        assert settings.logging.level == "INFO"

    def test_cached_settings(self, isolated_settings: Path) -> None:
        """Test that cached settings are a singleton until cleared."""
        first = get_cached_settings()
        assert get_cached_settings() is first

        get_cached_settings.cache_clear()
        assert get_cached_settings() is not first
