"""Utility functions for the CLI interface."""

from functools import wraps
import os
import json
from datetime import datetime
from typing import Optional, List

import click

from cabdispatch import config
from cabdispatch.services.identity_service import IdentityService, AuthError, Actor


def save_token(token: str) -> None:
    """Save auth token to config file."""
    if not os.path.exists(config.CONFIG_DIR):
        os.makedirs(config.CONFIG_DIR)

    with open(config.CONFIG_FILE, 'w') as f:
        json.dump({"token": token}, f)


def get_token() -> Optional[str]:
    """Get auth token from config file."""
    if not os.path.exists(config.CONFIG_FILE):
        return None

    try:
        with open(config.CONFIG_FILE, 'r') as f:
            return json.load(f).get("token")
    except json.JSONDecodeError:
        return None


def current_actor() -> Actor:
    """
    Get the actor behind the saved token.

    Raises:
        AuthError: If there is no token or it is invalid
    """
    token = get_token()
    if not token:
        raise AuthError("You are not signed in. Save a token with 'cabdispatch identity use' first.")
    return IdentityService.verify_token(token)


def require_role(roles: List[str]):
    """
    Decorator to require one of the given roles for a command.
    """
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            token = get_token()
            if not token:
                click.echo("You are not signed in. Please sign in first.", err=True)
                return

            try:
                IdentityService.require_role(token, roles)
            except AuthError as e:
                click.echo(f"Access denied: {str(e)}", err=True)
                return

            return f(*args, **kwargs)
        return wrapped
    return decorator


def format_time(value: Optional[datetime]) -> str:
    """Format a timestamp for tables."""
    return value.strftime('%Y-%m-%d %H:%M') if value else "-"
