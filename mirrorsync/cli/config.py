"""
CLI config command — show what a config file resolves to.

Usage:
    mirrorsync check-config [--config FILE]
"""

from __future__ import annotations

from typing import Optional

import click

from ..errors import ConfigurationError


@click.command("check-config")
@click.option("--config", "config_path", default=None, help="Config file (default: MIRRORSYNC_CONFIG or config.json)")
def check_config(config_path: Optional[str]) -> None:
    """Validate the config file and list its sources."""
    from ..config.loader import load_config, resolve_config_path

    path = resolve_config_path(config_path)
    try:
        config = load_config(path)
    except ConfigurationError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        raise SystemExit(2)

    click.echo(f"\n📋 {path}\n")
    click.echo(f"  Destination: {config.destination}")
    click.echo(f"  Workers:     {config.workers}")
    click.echo()

    if not config.sources:
        click.secho("  No sources configured.", fg="yellow")
        return

    for source in config.sources:
        click.secho(f"  ✓ {source}", fg="green", nl=False)
        click.echo(f" — token: {'yes' if source.token else 'no'}")
        if source.exclude:
            click.echo(f"      exclude: {', '.join(source.exclude)}")
        if source.include:
            click.echo(f"      include: {', '.join(source.include)}")
    click.echo()
