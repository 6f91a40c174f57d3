"""Resolve the SSH jump host an instance should be reached through."""

from __future__ import annotations

import logging

from ..cloud.client import CloudClient
from ..cloud.errors import CloudAPIError
from ..cloud.models import Instance
from .classifier import TagEffect, recognized_tags

logger = logging.getLogger(__name__)

DEFAULT_JUMP_USER = "root"


class BastionLookupError(Exception):
    """The bastion named by an instance's proxy tag could not be resolved."""

    def __init__(self, instance: str, bastion: str, reason: str) -> None:
        super().__init__(f"{instance}: bastion {bastion} not resolved: {reason}")
        self.instance = instance
        self.bastion = bastion


class BastionCache:
    """Bastion name to IP address, valid for one profile's walk."""

    def __init__(self) -> None:
        self._addresses: dict[str, str] = {}
        self.lookups = 0

    def get(self, name: str) -> str | None:
        return self._addresses.get(name)

    def set(self, name: str, address: str) -> None:
        self._addresses[name] = address

    def __contains__(self, name: object) -> bool:
        return name in self._addresses

    def __len__(self) -> int:
        return len(self._addresses)


def jump_args(user: str, address: str) -> str:
    return f"-J {user}@{address}"


async def resolve_jump_args(
    instance: Instance,
    cache: BastionCache,
    client: CloudClient,
) -> str | None:
    """Return ``-J user@ip`` for ``instance`` or ``None`` when it has no bastion.

    A literal ``tritoncli.ssh.ip`` wins over ``tritoncli.ssh.proxy``. Proxy
    names are looked up once per profile and cached.
    """
    tags = recognized_tags(instance.tags)
    user = str(tags.get(TagEffect.JUMP_USER) or DEFAULT_JUMP_USER)

    if TagEffect.JUMP_ADDRESS in tags:
        return jump_args(user, str(tags[TagEffect.JUMP_ADDRESS]))

    if TagEffect.JUMP_PROXY not in tags:
        logger.debug("%s: no proxy configured", instance.name)
        return None

    proxy_name = str(tags[TagEffect.JUMP_PROXY])
    address = cache.get(proxy_name)
    if address is not None:
        logger.debug("%s: using cached address %s for %s", instance.name, address, proxy_name)
        return jump_args(user, address)

    logger.debug("%s: proxy %s not cached, retrieving", instance.name, proxy_name)
    cache.lookups += 1
    try:
        bastion = await client.get_instance(proxy_name)
    except CloudAPIError as exc:
        raise BastionLookupError(instance.name, proxy_name, str(exc)) from exc
    if not bastion.primary_ip:
        raise BastionLookupError(instance.name, proxy_name, "no primary IP")

    cache.set(proxy_name, bastion.primary_ip)
    return jump_args(user, bastion.primary_ip)
