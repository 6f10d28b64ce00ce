"""
CLI commands for inspecting and fetching formulas.

Thin wrappers over ``formulary.core.use_cases``.
"""

from __future__ import annotations

import json
import sys

import click

from formulary.core.config.loader import ConfigError, load_settings
from formulary.core.models.settings import Settings


def resolve_settings(ctx: click.Context) -> Settings:
    """Load settings from --config and apply the --prefix override."""
    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    prefix = ctx.obj.get("prefix")
    if prefix:
        settings = settings.model_copy(update={"prefix": prefix})
    return settings


@click.group()
def formula() -> None:
    """Formulas — info, check, fetch, list."""


# ── Observe ─────────────────────────────────────────────────────


@formula.command("info")
@click.argument("name")
@click.option("--os", "os_name", default=None, help="Platform to describe (macos, linux).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def info(ctx: click.Context, name: str, os_name: str | None, as_json: bool) -> None:
    """Show what a formula declares and whether it is installed."""
    from formulary.core.use_cases.formula_info import formula_info

    result = formula_info(name, settings=resolve_settings(ctx), os_name=os_name)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    f = result.formula
    assert f is not None
    click.secho(f"\n📦 {f.name} {f.version}", fg="cyan", bold=True)
    if f.desc:
        click.echo(f"   {f.desc}")
    if f.homepage:
        click.echo(f"   {f.homepage}")
    if f.license:
        click.echo(f"   License: {f.license}")
    if f.head:
        click.echo(f"   HEAD: {f.head.url} ({f.head.branch})")
    click.echo()

    click.secho("   Releases:", bold=True)
    for platform_key in f.supported_platforms():
        marker = " ← host" if platform_key == result.host_platform else ""
        click.echo(f"     • {platform_key}{marker}")
        if ctx.obj.get("verbose"):
            artifact = f.releases[platform_key]
            click.echo(f"       {f.render_url(artifact)}")
            click.echo(f"       sha256 {artifact.sha256}")

    if result.unsupported:
        click.secho(f"   ⚠️  {result.unsupported}", fg="yellow")

    if f.build_dependencies:
        deps = ", ".join(f"{d.name} ({d.kind})" for d in f.build_dependencies)
        click.echo(f"   Build dependencies: {deps}")

    click.echo()
    if result.installed:
        click.secho(f"   ✓ Installed {result.installed.version}", fg="green")
        for path in result.installed.artifacts:
            click.echo(f"     {path}")
    else:
        click.echo("   Not installed")
    click.echo()


@formula.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List available formulas."""
    from formulary.core.use_cases.formula_info import list_formulas

    result = list_formulas(settings=resolve_settings(ctx))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.formulas:
        click.secho("⚠️  No formulas found", fg="yellow")
        return

    for f in result.formulas:
        click.secho(f"   {f.name} ", bold=True, nl=False)
        click.echo(f"{f.version}  {f.desc}")


@formula.command("check")
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, name: str, as_json: bool) -> None:
    """Validate a formula's consistency."""
    from formulary.core.use_cases.formula_check import check_formula

    result = check_formula(name, settings=resolve_settings(ctx))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.formula is not None
        click.secho(f"✅ {result.formula.name} {result.formula.version} is valid", fg="green", bold=True)
    else:
        click.secho("❌ Formula errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        sys.exit(1)


# ── Act ─────────────────────────────────────────────────────────


@formula.command("fetch")
@click.argument("name")
@click.option("--os", "os_name", default=None, help="Platform to fetch (macos, linux).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def fetch(ctx: click.Context, name: str, os_name: str | None, as_json: bool) -> None:
    """Download and verify a release archive without installing it."""
    from formulary.core.use_cases.fetch import fetch_formula

    result = fetch_formula(name, settings=resolve_settings(ctx), os_name=os_name)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if result.error:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"✅ {result.formula_name} {result.version} verified", fg="green")
    click.echo(f"   {result.path}")
