"""Record validation and API server commands."""

import asyncio
import json
from pathlib import Path

import click
import yaml

from schemaforge.cli.metadata_cmd import (
    load_metadata,
    metadata_path_option,
    resolve_settings,
    validators_option,
)
from schemaforge.validation import ConfigurationError, ValidationService


@click.command()
@click.argument("object_name")
@click.argument("record_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the result as JSON.")
@metadata_path_option
@validators_option
def validate(
    object_name: str,
    record_path: Path,
    as_json: bool,
    metadata_path: Path | None,
    validator_modules: tuple[str, ...],
):
    """Validate a JSON or YAML record file against an object."""
    settings = resolve_settings(metadata_path, validator_modules)
    loader = load_metadata(settings)

    obj = loader.get_object(object_name)
    if obj is None:
        click.echo(f"Error: Object '{object_name}' not found", err=True)
        raise SystemExit(1)

    with record_path.open() as fh:
        try:
            record = yaml.safe_load(fh)
        except yaml.YAMLError as e:
            click.echo(f"Error: cannot parse {record_path}: {e}", err=True)
            raise SystemExit(1)

    service = ValidationService(strict_field_refs=settings.strict_field_refs)
    try:
        result = asyncio.run(
            service.validate_instance(obj, loader.fields_for(obj), record)
        )
    except ConfigurationError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        raise SystemExit(2)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
    elif result.valid:
        click.echo(click.style("Record is valid.", fg="green", bold=True))
    else:
        for error in result.errors:
            click.echo(click.style(f"  ✗ {error.field}: {error.message} ({error.value!r})", fg="red"))
        click.echo(click.style(f"\n{len(result.errors)} error(s) found", fg="red", bold=True))

    if not result.valid:
        raise SystemExit(1)


@click.command()
@click.option("--host", default="127.0.0.1", help="Bind address.")
@click.option("--port", default=None, type=int, help="Port (default: SCHEMAFORGE_PORT or 8000).")
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
def serve(host: str, port: int | None, reload: bool):
    """Run the validation API."""
    import uvicorn

    settings = resolve_settings(None)
    uvicorn.run(
        "schemaforge.api:app",
        host=host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
