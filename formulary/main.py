"""
formulary — CLI entrypoint.

Usage:
    formulary --help
    formulary install envelope
    formulary formula info envelope
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from formulary import __version__
from formulary.core.observability.logging_config import resolve_level, setup_logging
from formulary.ui.cli.formula import formula, resolve_settings


@click.group()
@click.version_option(version=__version__, prog_name="formulary")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to formulary.yml (default: auto-detect).",
)
@click.option(
    "--prefix",
    type=click.Path(file_okay=False),
    default=None,
    help="Install prefix (overrides config and FORMULARY_PREFIX).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    prefix: str | None,
) -> None:
    """formulary — install prebuilt releases from declarative formulas."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["prefix"] = prefix

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))


@cli.command()
@click.argument("name")
@click.option("--os", "os_name", default=None, help="Platform to install for (macos, linux).")
@click.option("--dry-run", is_flag=True, help="Plan but don't download or write.")
@click.option("--force", is_flag=True, help="Reinstall even if already installed.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    name: str,
    os_name: str | None,
    dry_run: bool,
    force: bool,
    as_json: bool,
) -> None:
    """Install a formula's prebuilt release.

    Examples:

        formulary install envelope

        formulary install envelope --dry-run --os linux
    """
    from formulary.core.use_cases.install import install_formula

    result = install_formula(
        name,
        settings=resolve_settings(ctx),
        os_name=os_name,
        dry_run=dry_run,
        force=force,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    f = result.formula
    assert f is not None and result.selected is not None
    quiet = ctx.obj.get("quiet", False)

    if dry_run:
        click.secho(f"\n⚡ [dry-run] {f.name} {f.version}", fg="cyan", bold=True)
        click.echo(f"   Platform: {result.selected.platform}")
        click.echo(f"   Fetch:    {result.selected.url}")
        click.echo(f"   sha256:   {result.selected.sha256}")
        click.echo(f"   Binary:   {result.binary}")
        click.echo(f"   Man page: {result.man_page}")
        click.echo()
        return

    if result.skipped:
        click.secho(f"✓ {f.name} {f.version} is already installed", fg="green")
        if not quiet:
            click.echo("   Use --force to reinstall.")
        return

    click.secho(f"✅ Installed {f.name} {f.version}", fg="green", bold=True)
    if not quiet:
        for path in result.artifacts:
            click.echo(f"   {path}")
        click.echo(f"   ({result.duration_ms}ms)")


@cli.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, name: str, as_json: bool) -> None:
    """Remove an installed formula's binary and man page."""
    from formulary.core.use_cases.uninstall import uninstall_formula

    result = uninstall_formula(name, settings=resolve_settings(ctx))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"🗑  Uninstalled {result.name} {result.version}", fg="green")
    for path in result.removed:
        click.echo(f"   - {path}")
    for path in result.missing:
        click.secho(f"   ⊘ {path} (already gone)", fg="yellow")


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List installed formulas."""
    from formulary.core.use_cases.uninstall import list_installed

    result = list_installed(settings=resolve_settings(ctx))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.installed:
        click.echo("Nothing installed.")
        return

    for entry in result.installed:
        click.secho(f"   {entry.name} ", bold=True, nl=False)
        click.echo(f"{entry.version} [{entry.platform}]")
        if ctx.obj.get("verbose"):
            for path in entry.artifacts:
                click.echo(f"     {path}")


cli.add_command(formula)


if __name__ == "__main__":
    cli()
