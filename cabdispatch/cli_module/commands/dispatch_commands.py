"""Dispatcher commands for the CabDispatch CLI."""

import click
from tabulate import tabulate

from cabdispatch import config
from cabdispatch.cli_module.utils import require_role
from cabdispatch.engine.errors import DispatchError, LowConfidenceMatch, ScheduleConflict
from cabdispatch.services.dispatch_service import DispatchService, DispatchServiceError
from cabdispatch.services.fleet_service import FleetServiceError
from cabdispatch.services.identity_service import Role

STAFF_ROLES = [Role.DISPATCHER.value, Role.ADMIN.value]


@click.group(name="dispatch")
def dispatch_group():
    """Rank drivers, assign and cancel bookings."""
    pass


@dispatch_group.command(name="ranked", help="Rank drivers for a booking, best match first.")
@click.argument("booking_id", required=True)
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Score drivers in parallel")
@require_role(STAFF_ROLES)
def ranked(booking_id, workers):
    """Show ranked drivers for a booking."""
    try:
        drivers = DispatchService.ranked_drivers(booking_id, max_workers=workers)
    except (DispatchServiceError, FleetServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)
        return

    if not drivers:
        click.echo("No active drivers found.")
        return

    table_data = []
    for position, entry in enumerate(drivers, start=1):
        distance = entry["distance_miles"]
        table_data.append([
            position,
            entry["driver_id"],
            entry["driver_name"],
            entry["score"],
            entry["badge"],
            f"{distance:.1f} mi" if distance is not None else "unknown",
            "; ".join(entry["reasons"]) or "-",
            "; ".join(entry["warnings"]) or "-",
        ])

    click.echo(f"\nDrivers for booking {booking_id}:\n")
    click.echo(tabulate(
        table_data,
        headers=["#", "Driver ID", "Name", "Score", "Match", "Distance", "Reasons", "Warnings"],
        tablefmt="grid"
    ))


@dispatch_group.command(name="assign", help="Assign a driver to a booking manually.")
@click.argument("booking_id", required=True)
@click.argument("driver_id", required=True)
@click.option("--force", is_flag=True, help="Assign even if it double-books the driver (logged)")
@require_role(STAFF_ROLES)
def assign(booking_id, driver_id, force):
    """Assign or reassign a driver."""
    try:
        record = DispatchService.assign(booking_id, driver_id, mode="manual", force=force)
    except ScheduleConflict as e:
        click.echo(f"Error: {str(e)}", err=True)
        click.echo("Use --force to override the conflict.", err=True)
        return
    except (DispatchServiceError, FleetServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)
        return

    verb = "reassigned" if record["is_reassignment"] else "assigned"
    click.echo(f"Booking {record['booking_id']} {verb} to driver {record['driver_id']}.")
    if record["forced"]:
        click.echo("Warning: schedule conflict overridden.")


@dispatch_group.command(name="auto", help="Assign the best matching driver if the score is high enough.")
@click.argument("booking_id", required=True)
@click.option("--min-score", type=click.IntRange(0, 100), default=None,
              help=f"Minimum match score (default {config.MIN_AUTO_ASSIGN_SCORE})")
@require_role(STAFF_ROLES)
def auto(booking_id, min_score):
    """Auto-assign a booking."""
    try:
        record = DispatchService.auto_assign(booking_id, min_score=min_score)
    except LowConfidenceMatch as e:
        click.echo(f"Error: {str(e)}", err=True)
        click.echo(f"Assign manually with: cabdispatch dispatch assign {booking_id} {e.driver_id}", err=True)
        return
    except (DispatchServiceError, FleetServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)
        return

    verb = "reassigned" if record["is_reassignment"] else "assigned"
    click.echo(f"Booking {record['booking_id']} {verb} to driver {record['driver_id']} (score {record['score']}).")


@dispatch_group.command(name="cancel", help="Cancel a booking that has not started.")
@click.argument("booking_id", required=True)
@click.option("--reason", help="Reason for cancelling")
@require_role(STAFF_ROLES)
def cancel(booking_id, reason):
    """Cancel a booking."""
    try:
        booking = DispatchService.cancel(booking_id, reason)
        click.echo(f"Booking {booking.id} cancelled.")
    except (DispatchServiceError, DispatchError) as e:
        click.echo(f"Error: {str(e)}", err=True)
