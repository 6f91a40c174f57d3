from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from triton_ansible_inventory.cloud.errors import CloudAPIError, ResourceNotFoundError
from triton_ansible_inventory.cloud.models import Image, Instance
from triton_ansible_inventory.cloud.profiles import Profile
from triton_ansible_inventory.config import Settings

LINUX_IMAGE = "11111111-1111-1111-1111-111111111111"
WINDOWS_IMAGE = "22222222-2222-2222-2222-222222222222"


class FakeCloudClient:
    """In-memory stand-in for a CloudAPI session."""

    def __init__(
        self,
        profile: Profile,
        instances: list[Instance],
        images: list[Image] | None = None,
        *,
        fail_list_instances: bool = False,
        fail_list_images: bool = False,
    ) -> None:
        self.profile = profile
        self.instances = instances
        self.images = {image.id: image for image in images or []}
        self.fail_list_instances = fail_list_instances
        self.fail_list_images = fail_list_images
        self.get_instance_calls: list[str] = []
        self.closed = False

    async def list_instances(self) -> list[Instance]:
        if self.fail_list_instances:
            raise CloudAPIError("connection refused")
        return list(self.instances)

    async def list_images(self) -> list[Image]:
        if self.fail_list_images:
            raise CloudAPIError("images unavailable", status_code=500)
        return list(self.images.values())

    async def get_image(self, image_id: str) -> Image:
        try:
            return self.images[image_id]
        except KeyError:
            raise ResourceNotFoundError(f"image {image_id} not found", status_code=404) from None

    async def get_instance(self, id_or_name: str) -> Instance:
        self.get_instance_calls.append(id_or_name)
        for instance in self.instances:
            if id_or_name in (instance.id, instance.name):
                return instance
        raise ResourceNotFoundError(f"instance {id_or_name} not found", status_code=404)

    async def close(self) -> None:
        self.closed = True


def make_instance(name: str, image: str | None = LINUX_IMAGE, ip: str | None = None, **tags: Any) -> Instance:
    return Instance(id=f"id-{name}", name=name, primary_ip=ip or f"192.168.0.{len(name)}", image=image, tags=tags)


def make_image(image_id: str = LINUX_IMAGE, os: str = "linux", **tags: Any) -> Image:
    return Image(id=image_id, name=f"{os}-image", os=os, tags=tags)


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    for name in ("ANSIBLE_TRITON_KEY_ID", "LLEVEL", "TRITON_URL", "SDC_URL"):
        monkeypatch.delenv(name, raising=False)
    return Settings(_env_file=None, config_dir=tmp_path / ".triton")


@pytest.fixture
def write_profile(settings: Settings):
    def _write(name: str, **data: Any) -> Path:
        data.setdefault("url", f"https://{name}.api.example.com")
        data.setdefault("account", "ops")
        data.setdefault("keyId", "aa:bb:cc")
        settings.profiles_path.mkdir(parents=True, exist_ok=True)
        path = settings.profiles_path / f"{name}.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
