"""Ansible dynamic inventory script for Triton.

Ansible calls inventory scripts with ``--list`` (or ``--host HOST``) and
reads JSON from stdout.
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from .config import get_settings
from .inventory.service import build_inventory
from .logging import configure_logging, get_level_from_name

logger = logging.getLogger(__name__)

PROG_NAME = "triton-ansible-inventory"


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    options_metavar="[--list|--host=HOST]",
)
@click.option("--list", "list_", is_flag=True, help="Output all hosts info, works as inventory script.")
@click.option("--host", metavar="HOST", help="Output specific host info, works as inventory script.")
@click.pass_context
def cli(ctx: click.Context, list_: bool, host: str | None) -> None:
    """Build an Ansible inventory from every configured Triton profile."""
    settings = get_settings()
    try:
        configure_logging(get_level_from_name(settings.log_level))
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    if list_ and host:
        click.echo("Only one of --list or --host is allowed")
        click.echo(ctx.get_help())
        ctx.exit(1)

    if host:
        # --host is only consulted when _meta is missing, and --list always
        # provides _meta.
        logger.error("--host %s is not supported, use --list", host)
        ctx.exit(1)

    if not list_:
        click.echo(ctx.get_usage(), err=True)
        ctx.exit(1)

    report = asyncio.run(build_inventory(settings))
    if report.error_count:
        logger.warning("Inventory built with %d errors", report.error_count)
    click.echo(report.document.to_json())


def main(argv: list[str] | None = None) -> int:
    """Run the command, mapping every usage error to exit status 1."""
    try:
        return cli.main(args=argv, prog_name=PROG_NAME, standalone_mode=False) or 0
    except click.ClickException as exc:
        exc.show()
        return 1
    except click.Abort:
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
