"""Shared helpers for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

from op_ubi.core.config.loader import PluginConfig, load_config
from op_ubi.core.errors import OpUbiError
from op_ubi.core.observability.logging_config import redact


def plugin_config(ctx: click.Context) -> PluginConfig:
    """Load config once per invocation, exiting cleanly on error."""
    if ctx.obj.get("plugin_config") is None:
        try:
            ctx.obj["plugin_config"] = load_config(ctx.obj.get("config_path"))
        except OpUbiError as e:
            fail(e)
    return ctx.obj["plugin_config"]


def emit(data: dict[str, Any]) -> None:
    """Print a hook answer as JSON on stdout."""
    click.echo(json.dumps(data, indent=2))


def fail(error: OpUbiError) -> NoReturn:
    """Report a classified error on stderr and exit 1."""
    click.secho(f"❌ {redact(error.message)}", fg="red", err=True)
    if error.hint:
        click.echo("", err=True)
        click.echo(redact(error.hint), err=True)
    sys.exit(1)
