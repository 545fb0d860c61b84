"""Identity commands for the CabDispatch CLI."""

import click

from cabdispatch.cli_module.utils import save_token, current_actor
from cabdispatch.services.identity_service import IdentityService, AuthError, Role


@click.group(name="identity")
def identity_group():
    """Manage the identity used for dispatch commands."""
    pass


@identity_group.command(name="use", help="Save a token issued for you.")
@click.argument("token", required=True)
def use(token):
    """Verify and store a token for later commands."""
    try:
        actor = IdentityService.verify_token(token)
    except AuthError as e:
        click.echo(f"Error: {str(e)}", err=True)
        return

    save_token(token)
    click.echo(f"Signed in as {actor.user_id} ({actor.role.value}).")


@identity_group.command(name="issue", help="Issue a signed token for a user (needs JWT_SECRET).")
@click.option("--user-id", required=True, help="User or driver ID")
@click.option("--role", type=click.Choice([r.value for r in Role]), required=True, help="Role to grant")
@click.option("--save/--no-save", default=False, help="Also use the token for later commands")
def issue(user_id, role, save):
    """Issue a token for a user."""
    token = IdentityService.issue_token(user_id, role)
    if save:
        save_token(token)
        click.echo(f"Signed in as {user_id} ({role}).")
    click.echo(token)


@identity_group.command(name="whoami", help="Show the current identity.")
def whoami():
    """Show who the saved token belongs to."""
    try:
        actor = current_actor()
    except AuthError as e:
        click.echo(f"Error: {str(e)}", err=True)
        return

    click.echo(f"{actor.user_id} ({actor.role.value})")
