"""Inventory assembly across Triton profiles."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ..cloud.client import CloudClient, TritonClient
from ..cloud.errors import CloudAPIError
from ..cloud.models import Image, Instance
from ..cloud.profiles import Profile, load_all_profiles
from ..config import Settings
from .bastion import BastionCache, BastionLookupError, resolve_jump_args
from .classifier import classify
from .models import HostRecord, InventoryDocument

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Profile], CloudClient]


@dataclass
class ProfileResult:
    """Outcome of walking one profile."""

    name: str
    instances: int = 0
    excluded: int = 0
    skipped: bool = False
    errors: list[str] = field(default_factory=list)


@dataclass
class InventoryReport:
    document: InventoryDocument
    profiles: list[ProfileResult] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(len(result.errors) for result in self.profiles)


class InventoryService:
    """Walk profiles one at a time and fold their instances into one document.

    Instances inside a profile are enriched strictly in sequence, so the
    profile's bastion cache and the shared document only ever see one writer.
    """

    def __init__(self, settings: Settings, client_factory: ClientFactory | None = None) -> None:
        self.settings = settings
        self._client_factory = client_factory or self._open_client

    # ------------------------------------------------------------------ utils
    def _open_client(self, profile: Profile) -> CloudClient:
        return TritonClient.from_settings(profile, self.settings)

    async def _lookup_image(self, instance: Instance, client: CloudClient) -> Image | None:
        if not instance.image:
            return None
        try:
            return await client.get_image(instance.image)
        except CloudAPIError as exc:
            logger.debug("%s: error getting image %s: %s", instance.name, instance.image, exc)
            return None

    # ------------------------------------------------------------------- API
    async def enrich_instance(
        self,
        instance: Instance,
        client: CloudClient,
        cache: BastionCache,
        document: InventoryDocument,
        result: ProfileResult,
    ) -> HostRecord | None:
        """Classify one instance, resolve its jump host and add it to ``document``.

        Returns ``None`` for excluded instances. A bastion that cannot be
        resolved is recorded in ``result`` and the host is kept without
        jump arguments.
        """
        image = await self._lookup_image(instance, client)
        classification = classify(instance, image, client.profile.name)
        if classification.excluded:
            logger.debug("%s: excluded (os %s)", instance.name, image.os if image else None)
            result.excluded += 1
            return None

        record = HostRecord(
            name=instance.name,
            ansible_host=instance.primary_ip,
            ansible_user=classification.hostvars.get("ansible_user"),
            groups=classification.groups,
        )
        try:
            record.ansible_ssh_extra_args = await resolve_jump_args(instance, cache, client)
        except BastionLookupError as exc:
            logger.warning("%s", exc)
            result.errors.append(str(exc))

        document.add_host(record)
        result.instances += 1
        return record

    async def walk_profile(self, profile: Profile, document: InventoryDocument) -> ProfileResult:
        result = ProfileResult(name=profile.name)
        if profile.name == self.settings.skip_profile:
            logger.debug("Skipping profile %s", profile.name)
            result.skipped = True
            return result

        profile = profile.with_key_id(self.settings.key_id)
        try:
            client = self._client_factory(profile)
        except CloudAPIError as exc:
            logger.error("Error creating Triton client for profile %s: %s", profile.name, exc)
            result.errors.append(str(exc))
            return result

        try:
            try:
                instances = await client.list_instances()
            except CloudAPIError as exc:
                logger.error("Not able to list machines for profile %s (%s): %s", profile.name, profile.url, exc)
                result.errors.append(str(exc))
                return result

            try:
                await client.list_images()
            except CloudAPIError as exc:
                logger.debug("Error retrieving image information for %s: %s", profile.name, exc)

            logger.debug("Profile %s: %d instances to inventory", profile.name, len(instances))
            cache = BastionCache()
            for instance in instances:
                await self.enrich_instance(instance, client, cache, document, result)
        finally:
            await client.close()

        logger.info(
            "Profile %s: %d hosts, %d excluded, %d errors",
            profile.name,
            result.instances,
            result.excluded,
            len(result.errors),
        )
        return result

    async def build(self, profiles: Iterable[Profile]) -> InventoryReport:
        """Build a fresh inventory from ``profiles``, in the given order."""
        report = InventoryReport(document=InventoryDocument())
        for profile in profiles:
            report.profiles.append(await self.walk_profile(profile, report.document))
        return report


async def build_inventory(settings: Settings, client_factory: ClientFactory | None = None) -> InventoryReport:
    """Load every configured profile and build the inventory from scratch."""
    profiles = load_all_profiles(settings.config_dir)
    logger.debug("Loaded profiles: %s", ", ".join(profile.name for profile in profiles) or "none")
    return await InventoryService(settings, client_factory).build(profiles)
