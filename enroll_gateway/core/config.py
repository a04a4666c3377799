"""
Application configuration using pydantic-settings.
All environment variables are validated and typed.
"""

import shlex
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # HTTP listener
    host: str = "0.0.0.0"
    port: int = 3748

    # Directory holding manifest.plist, install.html and other static files
    public_dir: Path = Path("public")

    # Directory the external CLI runs from (defaults to parent of public_dir)
    project_dir: Path | None = None

    # External build-automation CLI
    eas_command: str = "npx eas-cli"
    build_platform: str = "ios"
    build_profile: str = "ad-hoc"

    # Subprocess bounds (seconds / bytes)
    register_timeout: float = 30
    build_timeout: float = 60
    max_output_bytes: int = 10 * MIB

    # Build record retention in seconds; None keeps records for process lifetime
    build_record_ttl: float | None = None

    log_level: str = "INFO"

    @property
    def working_dir(self) -> Path:
        """Directory the external CLI is executed in."""
        if self.project_dir is not None:
            return self.project_dir.resolve()
        return self.public_dir.resolve().parent

    @property
    def eas_args(self) -> list[str]:
        """Parse the CLI command into argv prefix."""
        return shlex.split(self.eas_command)

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port out of range: {value}")
        return value

    @field_validator("register_timeout", "build_timeout", "max_output_bytes")
    @classmethod
    def _check_positive(cls, value):
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @field_validator("build_record_ttl", mode="before")
    @classmethod
    def _normalize_ttl(cls, value):
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("build_record_ttl")
    @classmethod
    def _check_ttl(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("build_record_ttl must be positive")
        return value

    @field_validator("eas_command")
    @classmethod
    def _check_command(cls, value: str) -> str:
        if not shlex.split(value):
            raise ValueError("eas_command must not be blank")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


# Singleton settings instance
settings = Settings()
