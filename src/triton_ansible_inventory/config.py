"""Configuration management for the Triton Ansible inventory."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_DIR = Path("~/.triton")
LOCAL_CONFIG_DIR = Path(".triton")


def default_config_dir(cwd: Path | None = None) -> Path:
    """Prefer a project-local ``.triton`` directory when it holds a config.json."""
    local = (cwd or Path.cwd()) / LOCAL_CONFIG_DIR
    if (local / "config.json").exists():
        return local
    return DEFAULT_CONFIG_DIR.expanduser()


class Settings(BaseSettings):
    """Centralised runtime configuration for the inventory."""

    model_config = SettingsConfigDict(
        env_prefix="ANSIBLE_TRITON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        populate_by_name=True,
    )

    # Profiles
    config_dir: Path = Field(
        default_factory=default_config_dir,
        description="Directory holding config.json and profiles.d/*.json.",
    )
    key_id: Optional[str] = Field(
        default=None,
        description="Signing key id taking precedence over each profile's keyId.",
    )
    skip_profile: str = Field(
        default="env",
        description="Reserved profile name that is loaded but never inventoried.",
    )

    # Logging
    log_level: str = Field(
        default="info",
        validation_alias=AliasChoices("LLEVEL", "ANSIBLE_TRITON_LOG_LEVEL"),
    )

    # CloudAPI
    request_timeout: float = Field(default=30.0)
    page_limit: int = Field(default=1000, gt=0)
    ssh_key_path: Optional[Path] = Field(default=None)
    ssh_key_passphrase: Optional[str] = Field(default=None)

    # HTTP service
    server_host: str = Field(default="127.0.0.1")
    server_port: int = Field(default=8000)

    @field_validator("config_dir", "ssh_key_path", mode="before")
    @classmethod
    def _expand_path(cls, value: Path | str | None) -> Path | None:
        if value is None:
            return None
        candidate = Path(value) if not isinstance(value, Path) else value
        return candidate.expanduser()

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def profiles_path(self) -> Path:
        return self.config_dir / "profiles.d"

    @property
    def config_path(self) -> Path:
        return self.config_dir / "config.json"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
