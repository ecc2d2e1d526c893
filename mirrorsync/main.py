"""
mirrorsync — CLI Entry Point

Usage:
    mirrorsync sync [--config FILE] [--workers N] [--report-file FILE] [--json]
    mirrorsync check-config [--config FILE]
    mirrorsync inspect PATH [--json]
"""

from __future__ import annotations

# Load .env before anything reads token variables
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from typing import Optional

import click

from .cli.config import check_config
from .cli.mirror import inspect_mirror, sync
from .logging_config import setup_logging


@click.group()
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR (default: LOG_LEVEL or INFO)")
@click.option("--log-format", type=click.Choice(["text", "json"]), default=None, help="Log output format")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]) -> None:
    """mirrorsync — Mirror hosted repositories into a local tree."""
    setup_logging(level=log_level, format_type=log_format)
    ctx.ensure_object(dict)


cli.add_command(sync)
cli.add_command(check_config)
cli.add_command(inspect_mirror)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
