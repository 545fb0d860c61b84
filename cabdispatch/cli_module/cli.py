"""Main CLI entry point for CabDispatch application."""

import click

from cabdispatch.config import configure_logging
from cabdispatch.cli_module.commands.identity_commands import identity_group
from cabdispatch.cli_module.commands.booking_commands import booking_group
from cabdispatch.cli_module.commands.dispatch_commands import dispatch_group
from cabdispatch.cli_module.commands.driver_commands import driver_group

# Set context settings to properly display help for all commands
CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
    "show_default": True
}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]), default=None,
              help="Override CABDISPATCH_LOG_LEVEL")
def cli(log_level):
    """CabDispatch CLI for dispatchers and drivers."""
    configure_logging(log_level)


# Register all command groups
cli.add_command(identity_group)
cli.add_command(booking_group)
cli.add_command(dispatch_group)
cli.add_command(driver_group)


def main():
    """Entry point for the application."""
    cli()


if __name__ == '__main__':
    main()
