"""Async CloudAPI client scoped to one profile."""

from __future__ import annotations

import logging
import re
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import Settings
from .auth import HttpSignatureAuth, find_signing_key
from .errors import AuthenticationError, CloudAPIError, ResourceNotFoundError
from .models import Image, Instance
from .profiles import Profile

logger = logging.getLogger(__name__)

API_VERSION = "~9||~8"
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

ModelT = TypeVar("ModelT", bound=BaseModel)


class CloudClient(Protocol):
    """Operations the inventory pipeline needs from a CloudAPI session."""

    profile: Profile

    async def list_instances(self) -> list[Instance]: ...

    async def list_images(self) -> list[Image]: ...

    async def get_image(self, image_id: str) -> Image: ...

    async def get_instance(self, id_or_name: str) -> Instance: ...

    async def close(self) -> None: ...


class TritonClient:
    """Thin async wrapper over the CloudAPI machines and images endpoints."""

    def __init__(
        self,
        profile: Profile,
        *,
        auth: httpx.Auth | None = None,
        timeout: float = 30.0,
        page_limit: int = 1000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.profile = profile
        self.page_limit = page_limit
        self._images: dict[str, Image] = {}
        self._http = httpx.AsyncClient(
            base_url=profile.url,
            auth=auth,
            timeout=timeout,
            verify=not profile.insecure,
            transport=transport,
            headers={"Accept": "application/json", "Accept-Version": API_VERSION},
        )

    @classmethod
    def from_settings(cls, profile: Profile, settings: Settings) -> "TritonClient":
        """Open a signed session for ``profile``; raises if no key matches."""
        if not profile.key_id:
            raise AuthenticationError(f"Profile {profile.name} has no keyId")
        key = find_signing_key(
            profile.key_id,
            key_path=settings.ssh_key_path,
            passphrase=settings.ssh_key_passphrase,
        )
        auth = HttpSignatureAuth(key, profile.account, profile.user)
        return cls(
            profile,
            auth=auth,
            timeout=settings.request_timeout,
            page_limit=settings.page_limit,
        )

    async def __aenter__(self) -> "TritonClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------ utils
    @property
    def _account_path(self) -> str:
        return "/" + (self.profile.act_as_account or self.profile.account)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._http.get(self._account_path + path, params=params)
        except httpx.HTTPError as exc:
            raise CloudAPIError(f"{self.profile.url}{path}: {exc}") from exc

        if response.is_success:
            try:
                return response.json()
            except ValueError as exc:
                raise CloudAPIError(
                    f"{self.profile.url}{path}: response is not JSON", status_code=response.status_code
                ) from exc

        code = None
        message = response.text
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message", message)

        error_cls = CloudAPIError
        if response.status_code == 404:
            error_cls = ResourceNotFoundError
        elif response.status_code in (401, 403):
            error_cls = AuthenticationError
        raise error_cls(message, status_code=response.status_code, code=code)

    def _validate(self, model: type[ModelT], data: Any, path: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise CloudAPIError(f"{self.profile.url}{path}: unexpected {model.__name__} record: {exc}") from exc

    def _validate_list(self, model: type[ModelT], data: Any, path: str) -> list[ModelT]:
        if not isinstance(data, list):
            raise CloudAPIError(f"{self.profile.url}{path}: expected a list, got {type(data).__name__}")
        return [self._validate(model, item, path) for item in data]

    # ------------------------------------------------------------------- API
    async def list_instances(self) -> list[Instance]:
        instances: list[Instance] = []
        offset = 0
        while True:
            page = await self._get("/machines", {"limit": self.page_limit, "offset": offset})
            instances.extend(self._validate_list(Instance, page, "/machines"))
            if len(page) < self.page_limit:
                break
            offset += len(page)
        logger.debug("Listed %d instances for profile %s", len(instances), self.profile.name)
        return instances

    async def list_images(self) -> list[Image]:
        """List all images and remember them for later ``get_image`` calls."""
        payload = await self._get("/images", {"state": "all"})
        images = self._validate_list(Image, payload, "/images")
        for image in images:
            self._images[image.id] = image
        return images

    async def get_image(self, image_id: str) -> Image:
        cached = self._images.get(image_id)
        if cached is not None:
            return cached
        path = f"/images/{image_id}"
        image = self._validate(Image, await self._get(path), path)
        self._images[image.id] = image
        return image

    async def get_instance(self, id_or_name: str) -> Instance:
        if UUID_RE.match(id_or_name):
            path = f"/machines/{id_or_name}"
            return self._validate(Instance, await self._get(path), path)

        matches = self._validate_list(Instance, await self._get("/machines", {"name": id_or_name}), "/machines")
        if not matches:
            raise ResourceNotFoundError(
                f"No instance named {id_or_name} in profile {self.profile.name}",
                status_code=404,
                code="ResourceNotFound",
            )
        return matches[0]
