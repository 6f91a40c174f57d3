"""Triton connection profiles loaded from the CLI configuration directory."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

ENV_PROFILE_NAME = "env"


class ProfileError(ValueError):
    """A profile file could not be read or is missing required fields."""


class Profile(BaseModel):
    """Named connection parameters for one CloudAPI endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    url: str
    account: str
    key_id: str | None = Field(default=None, alias="keyId")
    user: str | None = None
    insecure: bool = False
    roles: list[str] | None = None
    act_as_account: str | None = Field(default=None, alias="actAsAccount")

    def with_key_id(self, key_id: str | None) -> "Profile":
        """Return a copy using ``key_id`` when one is given."""
        if not key_id:
            return self
        return self.model_copy(update={"key_id": key_id})


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


def load_env_profile(environ: Mapping[str, str] | None = None) -> Profile | None:
    """Build the ``env`` profile from TRITON_* (or legacy SDC_*) variables."""
    environ = os.environ if environ is None else environ

    def lookup(suffix: str) -> str | None:
        return environ.get(f"TRITON_{suffix}") or environ.get(f"SDC_{suffix}")

    url = lookup("URL")
    if not url:
        return None
    return Profile(
        name=ENV_PROFILE_NAME,
        url=url,
        account=lookup("ACCOUNT") or "",
        key_id=lookup("KEY_ID"),
        user=lookup("USER"),
        insecure=_env_flag(lookup("TLS_INSECURE")),
    )


def load_profile_file(path: Path) -> Profile:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise ProfileError(f"Unable to read profile {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ProfileError(f"Profile {path} must contain a JSON object")

    data["name"] = path.stem
    try:
        return Profile.model_validate(data)
    except ValidationError as exc:
        raise ProfileError(f"Invalid profile {path}: {exc}") from exc


def load_all_profiles(
    config_dir: Path,
    environ: Mapping[str, str] | None = None,
) -> list[Profile]:
    """Load every profile, the ``env`` profile first and the rest by name.

    Files that fail to parse are logged and skipped so one broken profile
    does not hide the others.
    """
    profiles: list[Profile] = []
    env_profile = load_env_profile(environ)
    if env_profile is not None:
        profiles.append(env_profile)

    profiles_dir = config_dir / "profiles.d"
    if not profiles_dir.is_dir():
        logger.debug("No profiles directory at %s", profiles_dir)
        return profiles

    for path in sorted(profiles_dir.glob("*.json")):
        if path.stem == ENV_PROFILE_NAME:
            logger.warning("Ignoring %s: the env profile name is reserved", path)
            continue
        try:
            profiles.append(load_profile_file(path))
        except ProfileError as exc:
            logger.error("%s", exc)
    return profiles
