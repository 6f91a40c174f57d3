"""Entrypoint for running the inventory HTTP service."""

from __future__ import annotations

import logging

import uvicorn

from .config import get_settings
from .logging import configure_logging, get_level_from_name


def main() -> None:
    settings = get_settings()
    level = get_level_from_name(settings.log_level)
    configure_logging(level)
    uvicorn.run(
        "triton_ansible_inventory.api:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=False,
        log_level=logging.getLevelName(level).lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
