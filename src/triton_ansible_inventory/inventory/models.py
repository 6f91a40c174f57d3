"""Inventory data models based on Pydantic."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

RESERVED_GROUPS = frozenset({"_meta", "all"})
_GROUP_UNSAFE = re.compile(r"[.-]")


def sanitize_group_name(name: str) -> str:
    """Replace ``.`` and ``-`` with ``_`` so the name is a valid Ansible group."""
    return _GROUP_UNSAFE.sub("_", name)


class HostRecord(BaseModel):
    """Representation of a single enriched inventory host."""

    name: str = Field(description="Inventory hostname (the instance name).")
    ansible_host: str | None = Field(default=None, description="Primary IP of the instance.")
    ansible_user: str | None = Field(default=None, description="Login user from the image's default_user tag.")
    ansible_ssh_extra_args: str | None = Field(default=None, description="Jump host arguments, e.g. -J root@10.0.0.9.")
    groups: list[str] = Field(default_factory=list, description="Groups this host belongs to.")

    def to_hostvars(self) -> dict[str, Any]:
        """Convert to the host vars mapping expected by Ansible."""
        mapping: dict[str, Any] = {}
        if self.ansible_host:
            mapping["ansible_host"] = self.ansible_host
        if self.ansible_user:
            mapping["ansible_user"] = self.ansible_user
        if self.ansible_ssh_extra_args:
            mapping["ansible_ssh_extra_args"] = self.ansible_ssh_extra_args
        return mapping


class InventoryDocument(BaseModel):
    """The grouped inventory accumulated across every profile of a run.

    Only grows: hosts are added, never removed. Group order is the order in
    which each group was first seen.
    """

    hostvars: dict[str, dict[str, Any]] = Field(default_factory=dict)
    groups: dict[str, list[str]] = Field(default_factory=dict)

    @property
    def children(self) -> list[str]:
        return list(self.groups)

    def add_host(self, record: HostRecord) -> None:
        self.hostvars[record.name] = record.to_hostvars()
        for raw_group in record.groups:
            group = sanitize_group_name(raw_group)
            if group in RESERVED_GROUPS:
                logger.warning("Host %s: renaming reserved group %r to %r", record.name, raw_group, group + "_")
                group += "_"
            members = self.groups.setdefault(group, [])
            if record.name not in members:
                members.append(record.name)

    def to_dict(self) -> dict[str, Any]:
        """Render the dynamic inventory structure printed by ``--list``."""
        data: dict[str, Any] = {
            "_meta": {"hostvars": {name: dict(hv) for name, hv in self.hostvars.items()}},
            "all": {"children": self.children},
        }
        for group, members in self.groups.items():
            data[group] = {"hosts": list(members)}
        return data

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def to_static_inventory(self) -> dict[str, Any]:
        """Render the document in Ansible's YAML inventory layout."""
        children: dict[str, Any] = {}
        for group, members in self.groups.items():
            children[group] = {"hosts": {host: {} for host in members}}

        return {
            "all": {
                "hosts": {name: dict(hv) for name, hv in self.hostvars.items()},
                "children": children,
            }
        }
