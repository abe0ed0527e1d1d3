"""Metadata CLI commands: lint and inspect."""

from pathlib import Path

import click

from schemaforge.config import Settings, load_validator_modules
from schemaforge.metadata.loader import MetadataError, MetadataLoader
from schemaforge.metadata.validator import _SUBDIR_SCHEMA, validate_metadata_dir, validate_yaml_file
from schemaforge.validation import ConfigurationError, SchemaBuilder

metadata_path_option = click.option(
    "--metadata-path",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Metadata root directory (default: SCHEMAFORGE_METADATA_PATH or ./metadata).",
)

validators_option = click.option(
    "--validators",
    "validator_modules",
    multiple=True,
    help="Module to import for custom validator registration (repeatable).",
)


def resolve_settings(
    metadata_path: Path | None,
    validator_modules: tuple[str, ...] = (),
) -> Settings:
    """Settings from the environment, overridden by command-line options."""
    settings = Settings.from_env()
    if metadata_path is not None:
        settings.metadata_path = metadata_path
    settings.validator_modules.extend(validator_modules)
    return settings


def load_metadata(settings: Settings) -> MetadataLoader:
    """Load metadata and custom validators, exiting with status 1 on failure."""
    if not settings.metadata_path.exists():
        click.echo(f"Error: Metadata directory not found at {settings.metadata_path}", err=True)
        raise SystemExit(1)

    try:
        load_validator_modules(settings.validator_modules)
    except ImportError as e:
        click.echo(click.style(f"Failed to load validators: {e}", fg="red"), err=True)
        raise SystemExit(1)

    loader = MetadataLoader(settings.metadata_path)
    try:
        loader.load_all()
    except MetadataError as e:
        click.echo(click.style(f"Failed to load metadata: {e}", fg="red"), err=True)
        raise SystemExit(1)
    return loader


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings (and unresolved field references) as errors.",
)
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Validate a single YAML file instead of the whole metadata directory.",
)
@metadata_path_option
@validators_option
def validate(
    strict: bool,
    target_path: Path | None,
    metadata_path: Path | None,
    validator_modules: tuple[str, ...],
):
    """Lint metadata YAML and build every object schema."""
    settings = resolve_settings(metadata_path, validator_modules)

    # ── Structural (JSON Schema) validation ─────────────────────────────────
    if target_path is not None:
        # Single-file mode: infer schema from parent directory name
        parent = target_path.parent.name
        schema_name = _SUBDIR_SCHEMA.get(parent)
        if schema_name is None:
            click.echo(
                f"Warning: cannot determine schema for directory '{parent}'. "
                "Expected one of: fields, objects.",
                err=True,
            )
            issues = []
        else:
            issues = validate_yaml_file(target_path, schema_name)
    else:
        if not settings.metadata_path.exists():
            click.echo(
                f"Error: Metadata directory not found at {settings.metadata_path}", err=True
            )
            raise SystemExit(1)
        issues = validate_metadata_dir(settings.metadata_path, strict=strict)

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    # ── Schema build (configuration) validation ─────────────────────────────
    # Only runs when validating the full directory (target_path is None)
    if target_path is None:
        loader = load_metadata(settings)
        builder = SchemaBuilder(strict_field_refs=strict or settings.strict_field_refs)

        objects = sorted(loader.list_objects())
        click.echo(f"\nBuilt schemas for {len(objects)} object(s):")
        failed = False
        for name in objects:
            obj = loader.get_object(name)
            try:
                schema = builder.object_schema(obj, loader.fields_for(obj))
            except ConfigurationError as e:
                failed = True
                click.echo(click.style(f"  ✗ {name}: {e}", fg="red"))
                continue
            click.echo(f"  ✓ {name} ({len(schema.field_names)} fields)")

        if failed:
            click.echo(click.style("\nSchema build failed.", fg="red", bold=True))
            raise SystemExit(1)

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))


@metadata.command("show")
@click.argument("object_name")
@metadata_path_option
def show_cmd(object_name: str, metadata_path: Path | None):
    """Show an object's fields and their rules."""
    settings = resolve_settings(metadata_path)
    loader = load_metadata(settings)

    obj = loader.get_object(object_name)
    if obj is None:
        click.echo(f"Error: Object '{object_name}' not found", err=True)
        raise SystemExit(1)

    click.echo(f"{obj.display_name} ({obj.short_name})")
    for ref in obj.fields:
        field = loader.get_field(ref.field_short_name)
        marker = "*" if ref.mandatory else " "
        if field is None:
            click.echo(click.style(f"  {marker} {ref.field_short_name}: <unknown field>", fg="yellow"))
            continue
        rules = ", ".join(r.type.value for r in field.validation_rules) or "no rules"
        datatype = getattr(field.datatype, "value", field.datatype)
        click.echo(f"  {marker} {field.short_name} [{datatype}] {rules}")
