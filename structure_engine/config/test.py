"""Tests for configuration management."""

from pathlib import Path

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    get_default_locale,
    get_environment,
    get_environment_info,
    get_log_level,
    list_environment_variables,
    resolve_schema_path,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("STRUCTURE_FETCH_TIMEOUT", raising=False)
        assert get_environment(EnvVar.STRUCTURE_FETCH_TIMEOUT) == 10

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("STRUCTURE_FETCH_TIMEOUT", "99")
        assert get_environment(EnvVar.STRUCTURE_FETCH_TIMEOUT, override=3) == 3

    @pytest.mark.unit
    def test_int_type_conversion(self, monkeypatch):
        """Integer type conversion from string."""
        monkeypatch.setenv("STRUCTURE_MAX_EXTENDS_DEPTH", "12")
        result = get_environment(EnvVar.STRUCTURE_MAX_EXTENDS_DEPTH)
        assert result == 12
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch, caplog):
        """Invalid integer value returns default and is reported."""
        monkeypatch.setenv("STRUCTURE_MAX_EXTENDS_DEPTH", "deep")
        assert get_environment(EnvVar.STRUCTURE_MAX_EXTENDS_DEPTH) == 100
        assert "Ignoring STRUCTURE_MAX_EXTENDS_DEPTH='deep'" in caplog.text

    @pytest.mark.unit
    def test_float_type_conversion(self, monkeypatch):
        """Float values accept fractional seconds."""
        monkeypatch.setenv("STRUCTURE_FETCH_TIMEOUT", "2.5")
        assert get_environment(EnvVar.STRUCTURE_FETCH_TIMEOUT) == 2.5

    @pytest.mark.unit
    def test_bool_type_conversion(self, monkeypatch):
        """Boolean type conversion for true and false spellings."""
        for value in ("true", "1", "yes", "TRUE"):
            monkeypatch.setenv("STRUCTURE_READ_ONLY", value)
            assert get_environment(EnvVar.STRUCTURE_READ_ONLY) is True
        for value in ("false", "0", "No"):
            monkeypatch.setenv("STRUCTURE_READ_ONLY", value)
            assert get_environment(EnvVar.STRUCTURE_READ_ONLY) is False

    @pytest.mark.unit
    def test_unparsable_bool_returns_default(self, monkeypatch):
        """Unrecognized boolean text keeps the default."""
        monkeypatch.setenv("STRUCTURE_READ_ONLY", "maybe")
        assert get_environment(EnvVar.STRUCTURE_READ_ONLY) is False

    @pytest.mark.unit
    def test_none_default_for_locale(self, monkeypatch):
        """Locale defaults to None when not set."""
        monkeypatch.delenv("STRUCTURE_LOCALE", raising=False)
        assert get_environment(EnvVar.STRUCTURE_LOCALE) is None


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.STRUCTURE_FETCH_TIMEOUT)
        assert isinstance(info, EnvConfig)
        assert info.name == "STRUCTURE_FETCH_TIMEOUT"
        assert info.var_type is float
        assert info.category == "loader"


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_returns_all_variables(self):
        """Returns all EnvVar members when no category."""
        assert len(list_environment_variables()) == len(EnvVar)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Filters by category correctly."""
        controls = list_environment_variables("controls")
        assert EnvVar.STRUCTURE_LOCALE in controls
        assert EnvVar.STRUCTURE_READ_ONLY in controls
        assert EnvVar.STRUCTURE_FETCH_TIMEOUT not in controls


# =============================================================================
# Tests for convenience functions
# =============================================================================


class TestConvenience:
    """Tests for locale, log level and schema path helpers."""

    @pytest.mark.unit
    def test_default_locale_from_env(self, monkeypatch):
        monkeypatch.setenv("STRUCTURE_LOCALE", "de")
        assert get_default_locale() == "de"
        assert get_default_locale("fr") == "fr"

    @pytest.mark.unit
    def test_log_level_upper_cased(self, monkeypatch):
        monkeypatch.setenv("STRUCTURE_LOG_LEVEL", "debug")
        assert get_log_level() == "DEBUG"

    @pytest.mark.unit
    def test_schema_path_relative_to_base(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STRUCTURE_SCHEMA_DIR", str(tmp_path))
        assert resolve_schema_path("a.json") == tmp_path / "a.json"

    @pytest.mark.unit
    def test_schema_path_without_base(self, monkeypatch):
        monkeypatch.delenv("STRUCTURE_SCHEMA_DIR", raising=False)
        assert resolve_schema_path("a.json") == Path("a.json")
