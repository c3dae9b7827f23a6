"""Typed configuration with fail-fast validation.

Every knob is readable from the environment. Rendering options live under
``MDOC_RENDER_*``, site assembly under ``MDOC_SITE_*`` and logging under
``MDOC_LOG_*``. Invalid values raise :class:`~mdoc.errors.SettingsError`
immediately instead of surfacing mid-render.

Examples
--------
>>> from mdoc.settings import load_settings
>>> settings = load_settings()
>>> settings.render.fallback_link_template
"matlab:doc('{name}')"
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mdoc.errors import SettingsError
from mdoc.logging import get_logger

__all__ = [
    "MdocSettings",
    "ObservabilityConfig",
    "RenderSettings",
    "SiteSettings",
    "load_settings",
]

logger = get_logger(__name__)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class RenderSettings(BaseSettings):
    """HTML rendering options (``MDOC_RENDER_*``)."""

    model_config = SettingsConfigDict(env_prefix="MDOC_RENDER_", extra="forbid")

    code_language: str = Field(
        default="matlab", description="Language class for fenced blocks without a tag"
    )
    math_enabled: bool = Field(
        default=True, description="Append the KaTeX script to pages containing '$'"
    )
    katex_version: str = Field(default="0.16.9", description="KaTeX release loaded from the CDN")
    fallback_link_template: str = Field(
        default="matlab:doc('{name}')",
        description="href for names missing from the name map; '{name}' is substituted",
    )
    strict_cross_references: bool = Field(
        default=False, description="Raise on unresolved cross references instead of degrading"
    )

    @field_validator("fallback_link_template")
    @classmethod
    def _require_name_placeholder(cls, value: str) -> str:
        if "{name}" not in value:
            msg = "fallback_link_template must contain '{name}'"
            raise ValueError(msg)
        return value


class SiteSettings(BaseSettings):
    """Multi-file site assembly options (``MDOC_SITE_*``)."""

    model_config = SettingsConfigDict(env_prefix="MDOC_SITE_", extra="forbid")

    exclude_folders: list[str] = Field(
        default_factory=lambda: ["private", "test", "tests", "+internal"],
        description="Folder names skipped during discovery",
    )
    output_folder: str = Field(
        default="doc", description="Output folder name, relative to the source folder"
    )
    workers: int = Field(default=4, ge=1, description="Thread-pool size for page rendering")


class ObservabilityConfig(BaseSettings):
    """Logging toggles (``MDOC_LOG_*``)."""

    model_config = SettingsConfigDict(env_prefix="MDOC_", extra="forbid")

    log_level: str = Field(
        default="WARNING", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(default=False, description="Emit one JSON object per log record")

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            msg = f"log_level must be one of {sorted(_LOG_LEVELS)}"
            raise ValueError(msg)
        return level


class MdocSettings(BaseSettings):
    """Aggregate configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MDOC_",
        env_nested_delimiter="__",
        extra="forbid",
        case_sensitive=False,
    )

    render: RenderSettings = Field(
        default_factory=RenderSettings, description="Rendering configuration"
    )
    site: SiteSettings = Field(default_factory=SiteSettings, description="Site configuration")
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig, description="Logging configuration"
    )

    def __init__(self, **overrides: object) -> None:
        """Initialise settings with fail-fast validation."""
        try:
            super().__init__(**overrides)  # type: ignore[arg-type]
        except Exception as exc:
            msg = f"Configuration validation failed: {exc}"
            logger.exception(
                "Settings validation failed",
                extra={
                    "operation": "settings",
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            raise SettingsError(
                msg,
                cause=exc,
                context={"validation_error": str(exc)},
            ) from exc


def load_settings(**overrides: object) -> MdocSettings:
    """Load :class:`MdocSettings` with optional overrides.

    Parameters
    ----------
    **overrides : object
        Field values taking precedence over the environment, e.g.
        ``render=RenderSettings(math_enabled=False)``.

    Returns
    -------
    MdocSettings
        Validated settings.

    Raises
    ------
    SettingsError
        If any value fails validation.
    """
    return MdocSettings(**overrides)
