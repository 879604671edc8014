# src/keepsake/cli.py
"""Keepsake Command Line Interface.

Entry point for the keepsake CLI tool: inspect, verify, and checksum
documents on disk without the field-group types that wrote them.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError as SettingsValidationError

from keepsake import __version__
from keepsake.contracts.document import Document
from keepsake.core.artifact import ArtifactValidator, read_document, schema_version_of
from keepsake.core.codec import payload_text, records_checksum, verify
from keepsake.core.config import ValidationOptions, load_settings
from keepsake.core.constants import ENTITY_RECORDS_KEY, ID_KEY, META_KEY

__all__ = ["app"]

app = typer.Typer(
    name="keepsake",
    help="Keepsake: inspect and verify saved object-graph documents.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"keepsake version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Keepsake: inspect and verify saved object-graph documents."""
    from keepsake.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)


def _read(path: Path) -> Document:
    """Load a document or exit with a message on stderr."""
    try:
        document = read_document(path)
    except FileNotFoundError:
        typer.echo(f"Error: Document not found: {path}", err=True)
        raise typer.Exit(1) from None
    except ValueError as e:
        typer.echo(f"Error: {path} is not a valid JSON document: {e}", err=True)
        raise typer.Exit(1) from None

    if not isinstance(document, dict) or not isinstance(document.get(ENTITY_RECORDS_KEY), list):
        typer.echo(f"Error: {path} has no '{ENTITY_RECORDS_KEY}' array", err=True)
        raise typer.Exit(1)
    return document


def _field_group_counts(document: Document) -> dict[str, int]:
    counts: dict[str, int] = {}
    for entity in document[ENTITY_RECORDS_KEY]:
        if not isinstance(entity, dict):
            continue
        for name in entity:
            if name != ID_KEY:
                counts[name] = counts.get(name, 0) + 1
    return counts


@app.command()
def info(
    path: Path = typer.Argument(..., help="Path to a document (JSON)."),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    ),
) -> None:
    """Summarize a document: meta block, entity count, field-group usage."""
    document = _read(path)
    meta: dict[str, Any] = document.get(META_KEY) or {}  # type: ignore[assignment]
    summary = {
        "path": str(path),
        "legacy": not meta,
        "formatVersion": meta.get("formatVersion"),
        "schemaVersion": schema_version_of(document),
        "timestamp": meta.get("timestamp"),
        "externalVersion": meta.get("externalVersion"),
        "checksum": meta.get("checksum"),
        "entities": len(document[ENTITY_RECORDS_KEY]),
        "fieldGroups": _field_group_counts(document),
    }

    if json_output:
        typer.echo(json.dumps(summary, indent=2))
        return

    typer.echo(f"Document: {path}")
    if summary["legacy"]:
        typer.echo("  Legacy document (no meta block)")
    else:
        typer.echo(f"  Format version: {summary['formatVersion']}")
        typer.echo(f"  Schema version: {summary['schemaVersion']}")
        typer.echo(f"  Saved at (ms): {summary['timestamp']}")
        typer.echo(f"  External version: {summary['externalVersion']}")
        typer.echo(f"  Checksum: {summary['checksum'] or 'none'}")
    typer.echo(f"  Entities: {summary['entities']}")
    for name, held_by in sorted(summary["fieldGroups"].items()):
        typer.echo(f"    {name}: {held_by}")


@app.command("verify")
def verify_document(
    path: Path = typer.Argument(..., help="Path to a document (JSON)."),
    strict_version: bool = typer.Option(
        False,
        "--strict-version",
        help="Reject any schema version other than the current one.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (validation defaults).",
    ),
) -> None:
    """Validate structure, checksum, version, ids, and references.

    Field-group types are not known outside the application that wrote
    the document, so type checks are always off here.
    """
    options = ValidationOptions()
    if settings is not None:
        try:
            options = load_settings(settings).validation
        except (YamlParserError, YamlScannerError) as e:
            typer.echo(f"YAML syntax error in {settings}: {e.problem}", err=True)
            raise typer.Exit(1) from None
        except FileNotFoundError:
            typer.echo(f"Error: Settings file not found: {settings}", err=True)
            raise typer.Exit(1) from None
        except SettingsValidationError as e:
            typer.echo("Configuration errors:", err=True)
            for error in e.errors():
                loc = ".".join(str(x) for x in error["loc"])
                typer.echo(f"  - {loc}: {error['msg']}", err=True)
            raise typer.Exit(1) from None

    options = options.model_copy(
        update={
            "validate_field_groups": False,
            "strict_version": strict_version or options.strict_version,
        }
    )
    document = _read(path)
    report = ArtifactValidator(options=options).check(document)
    if not report.valid:
        typer.echo(f"Invalid [{report.code}]: {report.message}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Valid: {len(document[ENTITY_RECORDS_KEY])} entities")


@app.command()
def checksum(
    path: Path = typer.Argument(..., help="Path to a document (JSON)."),
    check: bool = typer.Option(
        False,
        "--check",
        help="Compare with the checksum stored in meta; exit 1 on mismatch.",
    ),
) -> None:
    """Recompute the checksum of a document's entity records."""
    document = _read(path)
    entities = document[ENTITY_RECORDS_KEY]
    try:
        digest = records_checksum(entities)
    except (TypeError, ValueError) as e:
        typer.echo(f"Error: entity records cannot be checksummed: {e}", err=True)
        raise typer.Exit(1) from None

    if not check:
        typer.echo(digest)
        return

    stored = (document.get(META_KEY) or {}).get("checksum")
    if not isinstance(stored, str):
        typer.echo("Error: document carries no checksum", err=True)
        raise typer.Exit(1)
    if not verify(payload_text(entities), stored):
        typer.echo(f"Checksum mismatch: stored {stored}, computed {digest}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Checksum OK: {digest}")
