"""
op-ubi — CLI entrypoint.

The mise hooks call these commands; each prints its answer as JSON on
stdout.  Logs and error explanations go to stderr.

Usage:
    op-ubi list-versions owner/repo [--version 1.2.3]
    op-ubi install owner/repo 1.2.3 /path/to/install
    op-ubi exec-env /path/to/install
    op-ubi cache show
    op-ubi doctor
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import click

from op_ubi import __version__
from op_ubi.core.observability.logging_config import setup_logging
from op_ubi.ui.cli.helpers import emit, fail, plugin_config


@click.group()
@click.version_option(version=__version__, prog_name="op-ubi")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to an op-ubi settings YAML (default: $MISE_OP_UBI_CONFIG).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """op-ubi — install private GitHub releases with 1Password credentials."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("MISE_OP_UBI_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("MISE_OP_UBI_LOG_FILE"),
        log_file_level=os.environ.get("MISE_OP_UBI_LOG_FILE_LEVEL"),
    )


@cli.command("list-versions")
@click.argument("repo")
@click.option("--version", "requested_version", default=None, help="Version that must be resolvable.")
@click.option("--force-refresh", is_flag=True, help="Ignore the cache for this call.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Include resolution details.")
@click.pass_context
def list_versions_cmd(
    ctx: click.Context,
    repo: str,
    requested_version: str | None,
    force_refresh: bool,
    as_json: bool,
) -> None:
    """List installable versions of REPO (owner/name)."""
    from op_ubi.core.use_cases.hooks import list_versions

    config = plugin_config(ctx)
    if force_refresh:
        config = config.model_copy(update={"force_refresh": True})

    result = list_versions(repo, requested_version, config=config)
    if result.error:
        fail(result.error)

    assert result.resolution is not None
    if as_json or ctx.obj.get("verbose"):
        emit(result.to_dict())
    else:
        emit({"versions": result.versions})


@cli.command("install")
@click.argument("repo")
@click.argument("version")
@click.argument("install_path", type=click.Path(file_okay=False))
@click.pass_context
def install_cmd(ctx: click.Context, repo: str, version: str, install_path: str) -> None:
    """Install VERSION of REPO into INSTALL_PATH/bin."""
    from op_ubi.core.use_cases.hooks import install

    config = plugin_config(ctx)
    result = install(repo, version, install_path, config=config)
    if result.error:
        fail(result.error)

    assert result.result is not None
    if not ctx.obj.get("quiet"):
        click.secho(
            f"✓ {repo}@{result.result.tag} → {', '.join(result.result.binaries)}",
            fg="green",
            err=True,
        )
    emit(result.to_dict())


@cli.command("exec-env")
@click.argument("install_path", type=click.Path(file_okay=False))
def exec_env_cmd(install_path: str) -> None:
    """Print the environment for running a tool installed at INSTALL_PATH."""
    from op_ubi.core.use_cases.hooks import exec_env

    emit(exec_env(install_path))


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def doctor(ctx: click.Context, as_json: bool) -> None:
    """Check 1Password CLI, ubi and configuration."""
    from op_ubi.core.use_cases.hooks import doctor as run_doctor

    result = run_doctor(plugin_config(ctx))

    if as_json:
        emit(result.to_dict())
        sys.exit(0 if result.ok else 1)
        return

    click.echo()
    for check in result.checks:
        if check["ok"]:
            click.secho(f"   ✓ {check['name']}", fg="green", nl=False)
        else:
            click.secho(f"   ✗ {check['name']}", fg="red", nl=False)
        click.echo(f"  {check['detail']}")
    click.echo()

    if not result.ok:
        sys.exit(1)


# ── Register sub-command groups from op_ubi/ui/cli/ ───────────────

from op_ubi.ui.cli.cache import cache  # noqa: E402

cli.add_command(cache)


if __name__ == "__main__":
    cli()
