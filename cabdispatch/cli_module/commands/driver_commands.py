"""Driver-specific commands for the CabDispatch CLI."""

import click
from tabulate import tabulate

from cabdispatch.cli_module.utils import require_role, current_actor, format_time
from cabdispatch.engine.errors import DispatchError
from cabdispatch.engine.lifecycle import next_status
from cabdispatch.models.booking import STAMP_FIELDS
from cabdispatch.models.location import Position
from cabdispatch.services.dispatch_service import DispatchService, DispatchServiceError
from cabdispatch.services.identity_service import AuthError, Role

STEP_CHOICES = [status.value for status in STAMP_FIELDS]


@click.group(name="driver")
def driver_group():
    """Driver specific commands."""
    pass


@driver_group.command(name="jobs", help="List your active bookings and the next step for each.")
@require_role([Role.DRIVER.value])
def jobs():
    """View your active bookings."""
    try:
        actor = current_actor()
        bookings = DispatchService.get_driver_bookings(actor.user_id)
    except (AuthError, DispatchServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)
        return

    if not bookings:
        click.echo("You have no active bookings.")
        return

    table_data = []
    for booking in bookings:
        upcoming = next_status(booking)
        table_data.append([
            booking.id,
            format_time(booking.scheduled_at),
            booking.pickup_address,
            booking.destination_address or f"{booking.requested_hours} h",
            booking.passenger_count,
            booking.status.value,
            upcoming.value if upcoming else "-",
        ])

    click.echo(tabulate(
        table_data,
        headers=["Booking ID", "Scheduled", "Pickup", "Destination", "Pax", "Status", "Next step"],
        tablefmt="grid"
    ))
    click.echo("\nTo record a step: cabdispatch driver advance <booking_id> <step> --lat <lat> --lng <lng>")


@driver_group.command(name="advance", help="Record the next lifecycle step with your current position.")
@click.argument("booking_id", required=True)
@click.argument("step", type=click.Choice(STEP_CHOICES))
@click.option("--lat", type=click.FloatRange(-90, 90), help="Current latitude")
@click.option("--lng", type=click.FloatRange(-180, 180), help="Current longitude")
@require_role([Role.DRIVER.value])
def advance(booking_id, step, lat, lng):
    """Advance a booking one step."""
    position = Position.at(lat, lng) if lat is not None and lng is not None else None

    try:
        actor = current_actor()
        booking = DispatchService.advance(booking_id, step, actor.user_id, position)
    except (AuthError, DispatchServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)
        return

    upcoming = next_status(booking)
    click.echo(f"Booking {booking.id} is now {booking.status.value}.")
    if upcoming:
        click.echo(f"Next step: {upcoming.value}")
