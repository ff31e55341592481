from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent  # fastapi-render/

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CompilePolicy(str, Enum):
    """When the template directory is compiled."""

    # Once, when the middleware is installed
    COMPILE_ONCE = "compile_once"
    # Before every request, for editing templates without restarting
    RECOMPILE_PER_REQUEST = "recompile_per_request"


class RenderSettings(BaseSettings):
    """Render middleware settings with validation.

    Values come from keyword arguments, ``RENDER_*`` environment variables
    or the ``.env`` file. Instances are frozen: the configuration is fixed
    once the middleware is installed.
    """

    directory: Path = Field(default=Path("templates"), description="Root directory scanned for templates")
    extension: str = Field(default=".tmpl", description="File suffix a template must have (e.g. '.tmpl')")
    layout: str | None = Field(default=None, description="Logical name of a shared layout template")
    compile_policy: CompilePolicy = Field(
        default=CompilePolicy.COMPILE_ONCE,
        description="Compile once at install time or before every request",
    )
    autoescape: bool = Field(default=True, description="Autoescape HTML in rendered templates")
    strict_undefined: bool = Field(default=False, description="Raise on undefined template variables")
    log_level: str = Field(default="INFO", description="Log level for the example application")
    log_file: Path | None = Field(default=None, description="Rotating JSON log file for the example application")

    model_config = SettingsConfigDict(
        env_prefix="RENDER_",
        env_file=Path(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
        validate_default=True,
    )

    @field_validator("extension", mode="after")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Ensure the extension is a dotted suffix such as '.tmpl'."""
        v = v.strip()
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"extension must start with '.' and name a suffix, got {v!r}")
        return v

    @field_validator("layout", mode="after")
    @classmethod
    def validate_layout(cls, v: str | None) -> str | None:
        """Normalize the layout to a slash-separated logical name; empty means no layout."""
        if v is None:
            return None
        v = v.strip().replace("\\", "/").strip("/")
        return v or None

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log_level is a standard logging level name."""
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @property
    def layout_path(self) -> Path | None:
        """Path of the layout file, or None when no layout is configured."""
        if self.layout is None:
            return None
        return self.directory / f"{self.layout}{self.extension}"


# Singleton settings instance (cached for performance)
_settings_instance: RenderSettings | None = None


def get_settings() -> RenderSettings:
    """Get singleton RenderSettings instance for dependency injection.

    Avoids re-reading the environment and ``.env`` file on every request.

    Returns:
        Cached RenderSettings instance
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = RenderSettings()
    return _settings_instance
