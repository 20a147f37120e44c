"""CLI entry point for the companion memory engine."""

import click

from cli.commands import consolidate_cmd, context, ingest, profile, query, status
from cli.config import load_config_model
from cli.logging_config import setup_logging


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines on stderr")
def cli(verbose: bool, json_logs: bool):
    """Companion memory - long-term memory for conversational robots."""
    try:
        config = load_config_model()
    except ValueError as e:
        raise click.ClickException(str(e))
    setup_logging(
        json_mode=json_logs or config.logging.json_mode,
        level="DEBUG" if verbose else config.logging.level,
        log_file=config.paths.log_file,
        file_level=config.logging.file_level,
    )


cli.add_command(ingest)
cli.add_command(query)
cli.add_command(context)
cli.add_command(profile)
cli.add_command(consolidate_cmd)
cli.add_command(status)


def main():
    cli()


if __name__ == "__main__":
    main()
