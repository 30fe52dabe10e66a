"""Command-line entry point for spawn-replacer.

Offline companion to the server hooks: it runs the same patch passes over
files on disk.

- `patch`: load a locations JSON dump, rewrite spawn types across its maps,
  print a per-map summary and optionally write the patched dataset.
- `payload`: rewrite spawn types inside a JSON payload file (for example a
  captured bot generation response).

Configuration comes from `--config-root` (a mod root holding `config/`), the
`SPAWN_REPLACER_*` environment and a `.env` file.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .config import Settings, load_settings
from .debug_dump import format_summary, write_debug_summary
from .errors import DatasetLoadError
from .identifiers import IdentifierSet
from .models.locations import Locations, load_locations
from .patcher import PatchOptions, patch_all_maps
from .payload import patch_serialized_payload

app = typer.Typer(help="Rewrite bot spawn types in location data and bot payloads")
logger = logging.getLogger(__name__)


def _settings(config_root: Optional[Path]) -> Settings:
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)
        logging.debug("Loaded environment from %s", env_file)
    settings = load_settings(config_root)
    logging.basicConfig(level=settings.LOG_LEVEL)
    return settings


def _read_dataset(path: Path) -> Locations:
    """Read and validate a locations JSON file.

    Raises:
        DatasetLoadError: the file is unreadable, not JSON or not a locations
            object.
    """
    try:
        raw: Any = json.loads(path.read_text(encoding="utf-8-sig"))
    except (OSError, ValueError) as e:
        raise DatasetLoadError(f"Cannot read dataset {path}: {e}") from e
    if not isinstance(raw, dict):
        raise DatasetLoadError(f"Dataset {path} must contain a JSON object")
    try:
        return load_locations(raw)
    except ValidationError as e:
        raise DatasetLoadError(f"Dataset {path} is not a valid locations object: {e}") from e


@app.callback()
def main() -> None:  # pragma: no cover - simple callback
    """spawn-replacer CLI.

    Use a subcommand like 'patch' or 'payload'.
    """
    pass


@app.command(help="Patch spawn types across the maps of a locations JSON file.")
def patch(
    dataset: Path = typer.Argument(..., help="Locations JSON file (map name -> location)"),
    config_root: Optional[Path] = typer.Option(
        None, help="Mod root containing config/config.json(c); env/defaults when omitted"
    ),
    output: Optional[Path] = typer.Option(
        None, help="Write the patched dataset here (input is never modified in place)"
    ),
    map_name: Optional[str] = typer.Option(
        None, "--map", help="Only patch this map (overrides ONLY_MAPS/EXCLUDE_MAPS)"
    ),
) -> None:
    """Run one orchestration pass over a dataset file."""
    settings = _settings(config_root)
    try:
        locations = _read_dataset(dataset)
    except DatasetLoadError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    identifiers = IdentifierSet.from_settings(settings)
    if not settings.ENABLED:
        typer.echo("Spawn replacer disabled (ENABLED=false); nothing patched.")
        return

    result = patch_all_maps(locations, identifiers, PatchOptions.from_settings(settings), map_name)
    for line in format_summary("CLI", identifiers, result):
        if line:
            typer.echo(line)
    if settings.DEBUG_DUMP and config_root is not None:
        write_debug_summary(config_root, "CLI", identifiers, result)

    if output is not None:
        dumped = locations.model_dump(mode="json", exclude_unset=True)
        output.write_text(json.dumps(dumped, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info("Wrote patched dataset to %s", output)


@app.command(help="Patch spawn types inside a JSON payload file.")
def payload(
    source: Path = typer.Argument(..., help="JSON payload file"),
    config_root: Optional[Path] = typer.Option(None, help="Mod root containing config/"),
    output: Optional[Path] = typer.Option(
        None, help="Write the patched payload here (defaults to stdout)"
    ),
) -> None:
    """Run the payload text patch over one file."""
    settings = _settings(config_root)
    try:
        text = source.read_text(encoding="utf-8-sig")
    except OSError as e:
        typer.echo(f"Cannot read payload {source}: {e}", err=True)
        raise typer.Exit(code=1)

    patched, replaced = patch_serialized_payload(text, IdentifierSet.from_settings(settings))
    if output is not None:
        output.write_text(patched, encoding="utf-8")
    else:
        typer.echo(patched)
    typer.echo(f"Replaced {replaced} spawn type(s).", err=True)


if __name__ == "__main__":  # pragma: no cover
    app()
