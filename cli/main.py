# cli/main.py
"""Main CLI entry point for Flow Canvas."""

import click

from flowcanvas.config import get_settings
from flowcanvas.utils.logging import setup_logging


@click.group()
@click.version_option(version='1.0.0')
@click.option('--log-level', default=None, help='Override the configured log level')
def cli(log_level):
    """Flow Canvas CLI - validate, store and activate messaging automations."""
    settings = get_settings()
    setup_logging(level=log_level or settings.log_level, json_output=settings.log_json)


def register_commands():
    """Register all CLI command groups."""
    from cli.commands.flow import flow
    cli.add_command(flow)

    from cli.commands.palette import palette
    cli.add_command(palette)


register_commands()


if __name__ == '__main__':
    cli()
