"""
CLI commands for module trees and module descriptors.

Thin wrappers over ``modpack.core.use_cases.transform_modules``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


@click.group()
def modules() -> None:
    """Module trees — rename packages in module.xml trees."""


@modules.command("transform")
@click.argument("modules_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def transform(ctx: click.Context, modules_dir: Path, as_json: bool) -> None:
    """Rename every module of MODULES_DIR in place."""
    from modpack.core.use_cases.transform_modules import run_transform_tree

    result = run_transform_tree(modules_dir, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None
    click.secho(f"✅ Transformed {modules_dir}", fg="green", bold=True)
    click.echo(f"   Files: {report.files}")
    click.echo(f"   Descriptors: {report.descriptors} ({len(report.changed_descriptors)} changed)")
    click.echo(f"   Renamed paths: {report.renamed_paths}")


@modules.command("rewrite")
@click.argument("descriptor", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Write the result here instead of stdout.",
)
@click.pass_context
def rewrite(ctx: click.Context, descriptor: Path, output: Path | None) -> None:
    """Rename the module and dependencies of one DESCRIPTOR."""
    from modpack.core.use_cases.transform_modules import run_rewrite

    result = run_rewrite(descriptor, output, config_path=ctx.obj.get("config_path"))

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    if output is None:
        click.echo(result.content, nl=False)
        return
    state = "rewritten" if result.changed else "unchanged"
    click.secho(f"✅ {result.name or descriptor.name} {state} → {output}", fg="green")
