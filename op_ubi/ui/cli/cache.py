"""
CLI commands for the version cache.

Thin wrappers over ``op_ubi.core.persistence.version_cache``.
"""

from __future__ import annotations

import json

import click

from op_ubi.core.errors import OpUbiError
from op_ubi.core.models.cache import SECONDS_PER_DAY
from op_ubi.core.models.version import validate_repo
from op_ubi.core.persistence.version_cache import VersionCache
from op_ubi.ui.cli.helpers import fail, plugin_config


@click.group()
def cache() -> None:
    """Version cache — inspect and clear cached release lists."""


@cache.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """List cached repositories with their age and freshness."""
    config = plugin_config(ctx)
    store = VersionCache(config.cache_dir)

    entries = store.entries()
    for entry in entries:
        entry["fresh"] = entry["age_seconds"] < config.cache_days * SECONDS_PER_DAY

    if as_json:
        click.echo(json.dumps({"cache_dir": str(store.cache_dir), "entries": entries}, indent=2))
        return

    click.secho(f"\n📦 {store.cache_dir}", fg="cyan", bold=True)
    if not entries:
        click.echo("   (empty)")
        click.echo()
        return

    for entry in entries:
        color = "green" if entry["fresh"] else "yellow"
        age_h = entry["age_seconds"] // 3600
        click.secho(f"   • {entry['repo']}", fg=color, nl=False)
        click.echo(f"  {entry['versions']} versions, latest {entry['latest']}, {age_h}h old")
    click.echo()


@cache.command()
@click.argument("repo", required=False)
@click.pass_context
def clear(ctx: click.Context, repo: str | None) -> None:
    """Invalidate REPO's cached versions, or every entry if REPO is omitted."""
    store = VersionCache(plugin_config(ctx).cache_dir)

    if repo:
        try:
            repo = validate_repo(repo)
        except OpUbiError as e:
            fail(e)
        store.invalidate(repo)
        click.secho(f"✓ Cleared cache for {repo}", fg="green")
        return

    removed = store.clear()
    click.secho(f"✓ Removed {removed} cache files", fg="green")
