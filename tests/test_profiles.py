from __future__ import annotations

from pathlib import Path

import pytest

from triton_ansible_inventory.cloud.profiles import (
    ProfileError,
    load_all_profiles,
    load_env_profile,
    load_profile_file,
)
from triton_ansible_inventory.config import Settings


def test_load_profile_file(settings: Settings, write_profile) -> None:
    path = write_profile("us-east-1", keyId="SHA256:abc", insecure=True, actAsAccount="other")
    profile = load_profile_file(path)

    assert profile.name == "us-east-1"
    assert profile.url == "https://us-east-1.api.example.com"
    assert profile.key_id == "SHA256:abc"
    assert profile.insecure is True
    assert profile.act_as_account == "other"


def test_invalid_profile_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ProfileError):
        load_profile_file(path)

    path.write_text('{"account": "ops"}', encoding="utf-8")
    with pytest.raises(ProfileError):
        load_profile_file(path)


def test_env_profile_from_environment() -> None:
    environ = {"SDC_URL": "https://legacy.example.com", "TRITON_ACCOUNT": "ops", "TRITON_TLS_INSECURE": "1"}
    profile = load_env_profile(environ)

    assert profile is not None
    assert profile.name == "env"
    assert profile.url == "https://legacy.example.com"
    assert profile.account == "ops"
    assert profile.insecure is True
    assert load_env_profile({}) is None


def test_load_all_profiles_order(settings: Settings, write_profile) -> None:
    write_profile("west")
    write_profile("east")
    write_profile("env")
    (settings.profiles_path / "bad.json").write_text("[]", encoding="utf-8")

    profiles = load_all_profiles(settings.config_dir, {"TRITON_URL": "https://env.example.com"})

    assert [profile.name for profile in profiles] == ["env", "east", "west"]
    assert profiles[0].url == "https://env.example.com"


def test_missing_profiles_dir(tmp_path: Path) -> None:
    assert load_all_profiles(tmp_path / "nowhere", {}) == []


def test_with_key_id(settings: Settings, write_profile) -> None:
    profile = load_profile_file(write_profile("prod"))

    assert profile.with_key_id(None) is profile
    assert profile.with_key_id("SHA256:new").key_id == "SHA256:new"
    assert profile.key_id == "aa:bb:cc"
