"""schemaforge CLI entry point."""

import click

from schemaforge.config import Settings, configure_logging


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Logging level (default: SCHEMAFORGE_LOG_LEVEL or INFO).",
)
def cli(log_level: str | None):
    """schemaforge: metadata-driven validation CLI."""
    configure_logging(log_level or Settings.from_env().log_level)


# Register subcommands
from schemaforge.cli.metadata_cmd import metadata  # noqa: E402
from schemaforge.cli.validate_cmd import serve, validate  # noqa: E402

cli.add_command(metadata)
cli.add_command(validate)
cli.add_command(serve)
