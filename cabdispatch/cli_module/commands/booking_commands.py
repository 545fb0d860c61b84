"""Booking commands for the CabDispatch CLI."""

import click
from tabulate import tabulate

from cabdispatch.cli_module.utils import require_role, format_time
from cabdispatch.engine.errors import DispatchError
from cabdispatch.engine.lifecycle import next_status
from cabdispatch.models.booking import ServiceType
from cabdispatch.models.location import parse_address_coordinates, strip_address_coordinates
from cabdispatch.services.dispatch_service import DispatchService, DispatchServiceError
from cabdispatch.services.identity_service import Role

STAFF_ROLES = [Role.DISPATCHER.value, Role.ADMIN.value]


@click.group(name="booking")
def booking_group():
    """Create and inspect bookings."""
    pass


@booking_group.command(name="create", help="Create a booking. Addresses may carry coordinates as 'text|lat,lng'.")
@click.option("--pickup", required=True, help="Pickup address, optionally 'text|lat,lng'")
@click.option("--destination", help="Destination address for transfers, optionally 'text|lat,lng'")
@click.option("--scheduled", required=True, type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"]),
              help="Scheduled pickup time (UTC)")
@click.option("--hours", type=click.IntRange(min=1), help="Book an hourly service for this many hours")
@click.option("--duration", type=click.IntRange(min=1), help="Estimated transfer duration in minutes")
@click.option("--passengers", type=click.IntRange(min=1), default=1, help="Passenger count")
@click.option("--passenger-name", help="Passenger name shown to dispatchers")
@require_role(STAFF_ROLES)
def create(pickup, destination, scheduled, hours, duration, passengers, passenger_name):
    """Create a pending booking."""
    service_type = ServiceType.HOURLY if hours else ServiceType.TRANSFER

    try:
        booking = DispatchService.create_booking(
            pickup_address=strip_address_coordinates(pickup),
            pickup=parse_address_coordinates(pickup),
            destination_address=strip_address_coordinates(destination),
            destination=parse_address_coordinates(destination),
            scheduled_at=scheduled,
            service_type=service_type,
            estimated_duration_minutes=duration,
            requested_hours=hours,
            passenger_count=passengers,
            passenger_name=passenger_name,
        )
        click.echo(f"Booking {booking.id} created for {format_time(booking.scheduled_at)}.")
        if booking.pickup is None:
            click.echo("Pickup has no coordinates; distance will be unknown when ranking drivers.")

    except (DispatchServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)


@booking_group.command(name="show", help="Show a booking and its lifecycle.")
@click.argument("booking_id", required=True)
@require_role(STAFF_ROLES + [Role.DRIVER.value])
def show(booking_id):
    """Show booking details."""
    try:
        booking = DispatchService.get_booking(booking_id)
    except (DispatchServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)
        return

    upcoming = next_status(booking)
    details = [
        ["ID", booking.id],
        ["Service", booking.service_type.value],
        ["Status", booking.status.value],
        ["Next step", upcoming.value if upcoming else "-"],
        ["Scheduled", format_time(booking.scheduled_at)],
        ["Pickup", booking.pickup_address],
        ["Destination", booking.destination_address or "-"],
        ["Passengers", booking.passenger_count],
        ["Passenger", booking.passenger_name or "-"],
        ["Driver", booking.driver_id or "Unassigned"],
    ]
    click.echo(tabulate(details, tablefmt="grid"))

    steps = []
    for label, stamp in [("Accepted", booking.accepted), ("Started", booking.started),
                         ("On destination", booking.driver_on_destination),
                         ("Passenger on board", booking.passenger_on_board), ("Ended", booking.ended)]:
        if stamp:
            coordinate = stamp.position.coordinate
            steps.append([label, format_time(stamp.at), f"{coordinate.latitude:.5f}, {coordinate.longitude:.5f}"])
    if steps:
        click.echo(tabulate(steps, headers=["Step", "Time", "Position"], tablefmt="grid"))

    if booking.cancelled_at:
        click.echo(f"Cancelled at {format_time(booking.cancelled_at)}: {booking.cancel_reason or 'no reason given'}")


@booking_group.command(name="delete", help="Delete a booking that is still pending.")
@click.argument("booking_id", required=True)
@require_role(STAFF_ROLES)
def delete(booking_id):
    """Delete a pending booking."""
    try:
        DispatchService.delete_booking(booking_id)
        click.echo(f"Booking {booking_id} deleted.")
    except (DispatchServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)
