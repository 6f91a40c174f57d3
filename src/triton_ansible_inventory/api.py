"""FastAPI application serving the Triton inventory over HTTP."""

from __future__ import annotations

from typing import Any

import yaml
from fastapi import Depends, FastAPI, Response
from pydantic import BaseModel, Field

from .cloud.profiles import load_all_profiles
from .config import Settings, get_settings
from .inventory.service import ClientFactory, InventoryReport, build_inventory

app = FastAPI(title="Triton Ansible Inventory", version="0.1.0")


class ProfileResponse(BaseModel):
    name: str
    url: str
    account: str
    skipped: bool = False


class ProfileStatusResponse(BaseModel):
    name: str
    instances: int
    excluded: int
    skipped: bool
    errors: list[str] = Field(default_factory=list)


async def get_client_factory() -> ClientFactory | None:
    """Override in tests to serve inventory from a fake CloudAPI."""
    return None


async def get_report(
    settings: Settings = Depends(get_settings),
    client_factory: ClientFactory | None = Depends(get_client_factory),
) -> InventoryReport:
    return await build_inventory(settings, client_factory)


@app.get("/healthz")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/profiles", response_model=list[ProfileResponse])
async def list_profiles(settings: Settings = Depends(get_settings)):
    return [
        ProfileResponse(
            name=profile.name,
            url=profile.url,
            account=profile.account,
            skipped=profile.name == settings.skip_profile,
        )
        for profile in load_all_profiles(settings.config_dir)
    ]


@app.get("/inventory")
async def inventory(report: InventoryReport = Depends(get_report)) -> dict[str, Any]:
    return report.document.to_dict()


@app.get("/inventory.yml")
async def inventory_yaml(report: InventoryReport = Depends(get_report)) -> Response:
    content = yaml.safe_dump(report.document.to_static_inventory(), sort_keys=False)
    return Response(content=content, media_type="application/yaml")


@app.get("/inventory/status", response_model=list[ProfileStatusResponse])
async def inventory_status(report: InventoryReport = Depends(get_report)):
    return [
        ProfileStatusResponse(
            name=result.name,
            instances=result.instances,
            excluded=result.excluded,
            skipped=result.skipped,
            errors=result.errors,
        )
        for result in report.profiles
    ]
