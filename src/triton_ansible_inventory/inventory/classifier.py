"""Derive inventory groups and host variables from instance tags."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from ..cloud.models import Image, Instance
from .models import sanitize_group_name

EXCLUDED_OS = frozenset({"windows"})


class TagEffect(enum.Enum):
    """What a recognized tag contributes to the inventory."""

    SERVICE_GROUPS = "service_groups"
    JUMP_ADDRESS = "jump_address"
    JUMP_PROXY = "jump_proxy"
    JUMP_USER = "jump_user"


CNS_SERVICES_TAG = "triton.cns.services"
SSH_IP_TAG = "tritoncli.ssh.ip"
SSH_PROXY_TAG = "tritoncli.ssh.proxy"
SSH_USER_TAG = "tritoncli.ssh.user"

TAG_EFFECTS: dict[str, TagEffect] = {
    CNS_SERVICES_TAG: TagEffect.SERVICE_GROUPS,
    SSH_IP_TAG: TagEffect.JUMP_ADDRESS,
    SSH_PROXY_TAG: TagEffect.JUMP_PROXY,
    SSH_USER_TAG: TagEffect.JUMP_USER,
}


def recognized_tags(tags: dict[str, Any]) -> dict[TagEffect, Any]:
    """Pick out the tags that carry a known meaning, keyed by their effect."""
    return {TAG_EFFECTS[key]: value for key, value in tags.items() if key in TAG_EFFECTS}


@dataclass
class Classification:
    """Groups and host variables for one instance."""

    groups: list[str] = field(default_factory=list)
    hostvars: dict[str, Any] = field(default_factory=dict)
    excluded: bool = False

    def add_group(self, name: str) -> None:
        group = sanitize_group_name(name)
        if group and group not in self.groups:
            self.groups.append(group)


def service_groups(value: Any) -> list[str]:
    """Split a CNS services tag (``web:80,api``) into service names."""
    names = []
    for entry in str(value).split(","):
        name = entry.split(":", 1)[0].strip()
        if name:
            names.append(name)
    return names


def classify(instance: Instance, image: Image | None, profile_name: str) -> Classification:
    """Map an instance and its image onto groups and host variables.

    ``image`` is ``None`` when the lookup failed; the OS group and login user
    are then left out. Instances running an excluded OS come back with
    ``excluded`` set and nothing else.
    """
    result = Classification()

    if image is not None:
        if image.os in EXCLUDED_OS:
            return Classification(excluded=True)
        if image.default_user:
            result.hostvars["ansible_user"] = image.default_user
        if image.os:
            result.add_group(image.os)

    services = recognized_tags(instance.tags).get(TagEffect.SERVICE_GROUPS)
    if services is not None:
        for name in service_groups(services):
            result.add_group(name)

    for key, value in instance.tags.items():
        if value is True:
            result.add_group(key)

    result.add_group(profile_name)
    return result
