"""Tests for mdoc.settings module.

Tests verify defaults, environment overrides and that invalid values fail
fast with :class:`SettingsError`.
"""

from __future__ import annotations

import pytest

from mdoc.errors import ErrorCode, SettingsError
from mdoc.settings import MdocSettings, RenderSettings, SiteSettings, load_settings


class TestDefaults:
    """Tests for default configuration values."""

    def test_render_defaults(self) -> None:
        """Rendering defaults match the built-in behaviour."""
        settings = load_settings()
        assert settings.render.code_language == "matlab"
        assert settings.render.math_enabled is True
        assert settings.render.fallback_link_template == "matlab:doc('{name}')"
        assert settings.render.strict_cross_references is False

    def test_site_defaults(self) -> None:
        """Site defaults skip private and test folders and write to ``doc``."""
        settings = load_settings()
        assert settings.site.exclude_folders == ["private", "test", "tests", "+internal"]
        assert settings.site.output_folder == "doc"
        assert settings.site.workers == 4

    def test_logging_defaults(self) -> None:
        """Logging defaults to plain WARNING output."""
        settings = load_settings()
        assert settings.observability.log_level == "WARNING"
        assert settings.observability.log_json is False


class TestEnvironment:
    """Tests for environment overrides."""

    def test_render_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """``MDOC_RENDER_*`` variables configure rendering."""
        monkeypatch.setenv("MDOC_RENDER_CODE_LANGUAGE", "octave")
        monkeypatch.setenv("MDOC_RENDER_MATH_ENABLED", "false")
        settings = load_settings()
        assert settings.render.code_language == "octave"
        assert settings.render.math_enabled is False

    def test_site_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """List values are read as JSON."""
        monkeypatch.setenv("MDOC_SITE_EXCLUDE_FOLDERS", '["private", "sandbox"]')
        monkeypatch.setenv("MDOC_SITE_WORKERS", "2")
        settings = load_settings()
        assert settings.site.exclude_folders == ["private", "sandbox"]
        assert settings.site.workers == 2

    def test_log_level_is_normalised(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Log levels are case-insensitive."""
        monkeypatch.setenv("MDOC_LOG_LEVEL", "debug")
        monkeypatch.setenv("MDOC_LOG_JSON", "true")
        settings = load_settings()
        assert settings.observability.log_level == "DEBUG"
        assert settings.observability.log_json is True


class TestValidation:
    """Tests for fail-fast validation."""

    @pytest.mark.parametrize(
        ("variable", "value"),
        [
            ("MDOC_LOG_LEVEL", "LOUD"),
            ("MDOC_SITE_WORKERS", "0"),
            ("MDOC_RENDER_FALLBACK_LINK_TEMPLATE", "https://docs.example/"),
        ],
    )
    def test_invalid_env(self, monkeypatch: pytest.MonkeyPatch, variable: str, value: str) -> None:
        """Invalid values raise SettingsError with the validation cause."""
        monkeypatch.setenv(variable, value)
        with pytest.raises(SettingsError, match="Configuration validation failed") as info:
            MdocSettings()
        assert info.value.code == ErrorCode.CONFIGURATION_ERROR
        assert info.value.__cause__ is not None


class TestLoadSettings:
    """Tests for load_settings overrides."""

    def test_overrides_take_precedence(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Explicit sections replace environment values."""
        monkeypatch.setenv("MDOC_RENDER_CODE_LANGUAGE", "octave")
        settings = load_settings(
            render=RenderSettings(code_language="text"),
            site=SiteSettings(output_folder="html"),
        )
        assert settings.render.code_language == "text"
        assert settings.site.output_folder == "html"

    def test_unknown_field(self) -> None:
        """Unknown top-level keys are rejected."""
        with pytest.raises(SettingsError):
            load_settings(colour=True)
