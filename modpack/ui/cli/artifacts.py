"""
CLI commands for artifacts in repository-layout directories.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from modpack.core.models.coords import ArtifactCoords, transformed_file_name


def _parse(text: str) -> ArtifactCoords:
    try:
        coords = ArtifactCoords.parse(text)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    if not coords.version:
        raise click.BadParameter(f"'{text}' has no version")
    return coords


@click.group()
def artifacts() -> None:
    """Artifacts — probe repositories and compute transformed names."""


@artifacts.command("probe")
@click.argument("coords")
@click.option(
    "--repo", "repo", type=click.Path(file_okay=False, path_type=Path), required=True,
    help="Repository root to probe (e.g. the provisioning repository).",
)
@click.option("--suffix", default="", help="Transformation suffix.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def probe(coords: str, repo: Path, suffix: str, as_json: bool) -> None:
    """Report whether COORDS is in REPO, transformed or not."""
    from modpack.core.services import repository

    parsed = _parse(coords)
    state, path = repository.probe(repo, parsed, suffix)

    if as_json:
        click.echo(json.dumps({"coords": str(parsed), "state": state, "path": str(path) if path else None}, indent=2))
        return

    if path is None:
        click.secho(f"✗ {parsed.gav}: {state}", fg="yellow")
        sys.exit(1)
    click.secho(f"✓ {parsed.gav}: {state}", fg="green")
    click.echo(f"   {path}")


@artifacts.command("filename")
@click.argument("coords")
@click.option("--suffix", required=True, help="Transformation suffix.")
def filename(coords: str, suffix: str) -> None:
    """Print the transformed file name of COORDS."""
    parsed = _parse(coords)
    click.echo(transformed_file_name(parsed.version, parsed.file_name, suffix))
