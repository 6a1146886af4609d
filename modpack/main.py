"""
modpack — CLI entrypoint.

Usage:
    python -m modpack.main --help
    modpack config check
    modpack install
    modpack modules transform build/dist/modules
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from modpack import __version__
from modpack.core.observability.logging_config import cli_level, setup_from_env


@click.group()
@click.version_option(version=__version__, prog_name="modpack")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to packaging.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """modpack — package module trees from versioned artifacts."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_from_env(cli_level(debug=debug, verbose=verbose, quiet=quiet))


@cli.group()
def config() -> None:
    """Build configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate packaging.yml configuration."""
    from modpack.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Name: {result.config.name}")
        click.echo(f"   Mode: {result.config.mode.value}")
        transform = result.config.transformable and result.config.transform
        click.echo(f"   Transformation: {'enabled' if transform else 'disabled'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--no-report", is_flag=True, help="Don't save the install report.")
@click.pass_context
def install(ctx: click.Context, as_json: bool, no_report: bool) -> None:
    """Install all module templates into the output directory."""
    from modpack.core.use_cases.install import run_install

    result = run_install(config_path=ctx.obj.get("config_path"), save=not no_report)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None  # guaranteed after error check above
    click.secho(f"📦 {report.name} ({report.mode})", fg="cyan", bold=True)
    click.echo(f"   Modules:   {len(report.modules)}")
    click.echo(
        f"   Artifacts: {len(report.artifacts)} "
        f"({report.transformed_count} transformed, {len(report.excluded)} excluded)"
    )
    if result.walk:
        click.echo(f"   Renamed module paths: {result.walk.renamed_paths}")
    if not ctx.obj.get("quiet"):
        for receipt in report.artifacts:
            marker = " ⇄" if receipt.transformed else ""
            click.echo(f"     • {receipt.coords} → {receipt.reference}{marker}")
    if result.report_path:
        click.echo(f"   Report: {result.report_path}")


# ── Register sub-command groups from modpack/ui/cli/ ──────────────

from modpack.ui.cli.artifacts import artifacts  # noqa: E402
from modpack.ui.cli.modules import modules  # noqa: E402

cli.add_command(artifacts)
cli.add_command(modules)


if __name__ == "__main__":
    cli()
