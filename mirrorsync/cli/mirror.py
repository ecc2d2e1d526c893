"""
CLI mirror commands — run a batch and look at a single mirror.

Usage:
    mirrorsync sync [--config FILE] [--destination DIR] [--workers N]
                    [--report-file FILE] [--json] [--strict]
    mirrorsync inspect PATH [--json]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from ..errors import ConfigurationError, InspectionError


@click.command("sync")
@click.option("--config", "config_path", default=None, help="Config file (default: MIRRORSYNC_CONFIG or config.json)")
@click.option("--destination", default=None, help="Override the destination root")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Repositories processed in parallel")
@click.option("--report-file", type=click.Path(path_type=Path), default=None, help="Write the batch report as JSON")
@click.option("--json", "as_json", is_flag=True, help="Print the batch report as JSON")
@click.option("--strict", is_flag=True, help="Exit with status 1 if any repository or source failed")
def sync(
    config_path: Optional[str],
    destination: Optional[str],
    workers: Optional[int],
    report_file: Optional[Path],
    as_json: bool,
    strict: bool,
) -> None:
    """Mirror or update every repository of every configured source."""
    from ..config.loader import load_config
    from ..mirror.manager import MirrorManager
    from ..persistence.report_file import save_report

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        raise SystemExit(2)

    overrides = {}
    if destination:
        overrides["destination"] = destination
    if workers:
        overrides["workers"] = workers
    if overrides:
        config = config.model_copy(update=overrides)

    report = MirrorManager(config).run()

    if report_file:
        save_report(report, report_file)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo("\n🔀 Mirror Summary\n")
        for stat in report.stats:
            if stat.listing_error:
                click.secho(f"  ❌ {stat.source}: listing failed — {stat.listing_error}", fg="red")
                continue
            icon = "✅" if stat.failures == 0 else "⚠️"
            click.echo(
                f"  {icon} {stat.source}: {stat.repos} repos — "
                f"mirrored {stat.mirrored}, updated {stat.updated}, "
                f"skipped {stat.skipped}, failed {stat.failures}"
            )
        failed = [r for r in report.results if r.outcome.is_failure]
        if failed:
            click.echo("\n  Failures:")
            for r in failed:
                click.echo(f"    {r.outcome.value}: {r.remote} -> {r.local} ({r.operation}: {r.error})")
        click.echo()

    if strict and (report.failures or report.listing_errors):
        raise SystemExit(1)


@click.command("inspect")
@click.argument("path", type=click.Path(path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def inspect_mirror(path: Path, as_json: bool) -> None:
    """Show whether a mirror exists and how large its packs are."""
    from ..mirror.inspector import inspect
    from ..mirror.operations import REPACK_THRESHOLD_BYTES

    try:
        state = inspect(path)
    except InspectionError as e:
        click.secho(f"❌ Cannot inspect {e.path}: {e.message}", fg="red", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(state.to_dict(), indent=2))
        return

    if not state.present:
        click.echo(f"{path}: absent")
        return

    mib = state.largest_pack_bytes / (1024 * 1024)
    click.echo(f"{path}: present")
    click.echo(f"  Objects:      {state.object_count}")
    click.echo(f"  Largest pack: {state.largest_pack_bytes} bytes ({mib:.1f} MiB)")
    if state.largest_pack_bytes > REPACK_THRESHOLD_BYTES:
        click.secho("  Over the repack threshold", fg="yellow")
