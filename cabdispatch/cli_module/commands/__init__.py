"""Command modules for the CabDispatch CLI."""

from cabdispatch.cli_module.commands.identity_commands import identity_group
from cabdispatch.cli_module.commands.booking_commands import booking_group
from cabdispatch.cli_module.commands.dispatch_commands import dispatch_group
from cabdispatch.cli_module.commands.driver_commands import driver_group

__all__ = [
    'identity_group',
    'booking_group',
    'dispatch_group',
    'driver_group',
]
