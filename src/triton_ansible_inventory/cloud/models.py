"""CloudAPI resource models based on Pydantic."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Image(BaseModel):
    """An image as returned by ``GET /:account/images``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str | None = None
    os: str | None = None
    tags: dict[str, Any] = Field(default_factory=dict)

    @property
    def default_user(self) -> str | None:
        value = self.tags.get("default_user")
        return str(value) if value else None


class Instance(BaseModel):
    """A machine as returned by ``GET /:account/machines``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str
    primary_ip: str | None = Field(default=None, alias="primaryIp")
    image: str | None = None
    tags: dict[str, Any] = Field(default_factory=dict)
