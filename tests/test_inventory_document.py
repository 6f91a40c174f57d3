from __future__ import annotations

import json

from triton_ansible_inventory.inventory.models import HostRecord, InventoryDocument, sanitize_group_name


def test_add_host_and_render() -> None:
    document = InventoryDocument()
    document.add_host(
        HostRecord(
            name="web01",
            ansible_host="10.0.0.10",
            ansible_user="root",
            groups=["web", "prod"],
        )
    )
    document.add_host(HostRecord(name="db01", ansible_host="10.0.0.11", groups=["db", "prod"]))

    data = json.loads(document.to_json())
    assert list(data) == ["_meta", "all", "web", "prod", "db"]
    assert data["all"]["children"] == ["web", "prod", "db"]
    assert data["prod"]["hosts"] == ["web01", "db01"]
    assert data["_meta"]["hostvars"]["web01"] == {"ansible_host": "10.0.0.10", "ansible_user": "root"}
    assert data["_meta"]["hostvars"]["db01"] == {"ansible_host": "10.0.0.11"}


def test_sanitized_groups_collide() -> None:
    document = InventoryDocument()
    document.add_host(HostRecord(name="a", ansible_host="10.0.0.1", groups=["my.group"]))
    document.add_host(HostRecord(name="b", ansible_host="10.0.0.2", groups=["my-group", "my_group"]))

    assert document.children == ["my_group"]
    assert document.groups["my_group"] == ["a", "b"]
    assert sanitize_group_name("a.b-c_d") == "a_b_c_d"


def test_reserved_groups_are_renamed() -> None:
    document = InventoryDocument()
    document.add_host(HostRecord(name="a", ansible_host="10.0.0.1", groups=["all"]))
    document.add_host(HostRecord(name="b", ansible_host="10.0.0.2", groups=["_meta", "prod"]))

    data = document.to_dict()
    assert data["all"] == {"children": ["all_", "_meta_", "prod"]}
    assert data["all_"] == {"hosts": ["a"]}
    assert data["_meta_"] == {"hosts": ["b"]}
    assert set(data["_meta"]) == {"hostvars"}


def test_missing_address_is_omitted() -> None:
    record = HostRecord(name="new1", ansible_host=None, ansible_user="root", groups=["prod"])
    assert record.to_hostvars() == {"ansible_user": "root"}


def test_static_inventory_layout() -> None:
    document = InventoryDocument()
    document.add_host(
        HostRecord(name="web01", ansible_host="10.0.0.10", ansible_ssh_extra_args="-J root@10.0.0.9", groups=["web"])
    )

    assert document.to_static_inventory() == {
        "all": {
            "hosts": {"web01": {"ansible_host": "10.0.0.10", "ansible_ssh_extra_args": "-J root@10.0.0.9"}},
            "children": {"web": {"hosts": {"web01": {}}}},
        }
    }
