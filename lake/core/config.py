"""
Lake settings.

Loaded from environment variables (``LAKE_`` prefix) and an optional ``.env``
file in the current directory via pydantic-settings.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LAKE_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    BUILD_FILE_NAME: str = "build.lake"
    DEFAULT_TASK: str = "default"

    # User plugins are looked up at <PLUGIN_DIR>/<name><PLUGIN_EXTENSION>
    PLUGIN_DIR: str = "plugins"
    PLUGIN_EXTENSION: str = ".py"

    # Seconds; None or 0 disables the SIGALRM guard (Unix only)
    SCRIPT_EXEC_TIMEOUT: int | None = None

    HTTP_TIMEOUT: float = Field(default=30.0, gt=0)

    LOG_LEVEL: str = "INFO"

    @field_validator("PLUGIN_EXTENSION")
    @classmethod
    def dotted_extension(cls, v: str) -> str:
        return v if v.startswith(".") else f".{v}"

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.strip().upper()


settings = Settings()
