#!/usr/bin/env python3
"""
Management script for the CabDispatch booking store.

The store runs as a background process whose PID is kept in ``server.pid``
next to this script. The database location follows ``CABDISPATCH_DB_FILE``.
"""

import os
import shutil
import signal
import subprocess
import sys
import time
from typing import Optional

import click

from cabdispatch.store_server import empty_db, write_db

ROOT = os.path.dirname(os.path.abspath(__file__))
PID_FILE = os.path.join(ROOT, 'server.pid')
DB_PATH = os.getenv('CABDISPATCH_DB_FILE', os.path.join(ROOT, 'data', 'db.json'))

# Seconds to wait for the store to come up, or to exit after SIGTERM
STARTUP_WAIT = 1.0
SHUTDOWN_WAIT = 3.0
POLL_INTERVAL = 0.2


def _read_pid() -> Optional[int]:
    """PID recorded in the PID file, or None when there is no file."""
    if not os.path.exists(PID_FILE):
        return None
    with open(PID_FILE, 'r') as f:
        content = f.read().strip()
    try:
        return int(content)
    except ValueError:
        raise click.ClickException(f"Invalid PID in {PID_FILE}: {content!r}")


def _is_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except OSError:
        return False
    return True


def _clear_pid():
    if os.path.exists(PID_FILE):
        os.remove(PID_FILE)


@click.group()
def cli():
    """CabDispatch store management CLI."""
    pass


@cli.command()
@click.option('--port', default=3000, help='Port to run the store on')
def start(port):
    """Start the booking store in the background."""
    pid = _read_pid()
    if pid is not None and _is_alive(pid):
        click.echo(f"Store already running with PID {pid}")
        return
    if pid is not None:
        click.echo(f"Removing stale PID file for {pid}")
        _clear_pid()

    if not os.path.exists(DB_PATH):
        click.echo(f"Creating empty database at {DB_PATH}")
        write_db(empty_db(), DB_PATH)

    click.echo(f"Starting booking store on port {port} with {DB_PATH}...")
    env = dict(os.environ, CABDISPATCH_DB_FILE=DB_PATH, CABDISPATCH_PORT=str(port))
    try:
        process = subprocess.Popen(
            [sys.executable, '-m', 'cabdispatch.store_server'],
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE)
    except OSError as e:
        raise click.ClickException(f"Error starting store: {e}")

    time.sleep(STARTUP_WAIT)
    if process.poll() is not None:
        _, stderr = process.communicate()
        click.echo(f"Store exited with code {process.returncode}", err=True)
        click.echo(stderr.decode('utf-8', errors='replace'), err=True)
        sys.exit(1)

    with open(PID_FILE, 'w') as f:
        f.write(str(process.pid))
    click.echo(f"Store running with PID {process.pid} at http://localhost:{port}")


@cli.command()
def stop():
    """Stop the booking store, force killing it if SIGTERM is ignored."""
    pid = _read_pid()
    if pid is None:
        click.echo("No running store found")
        return

    if not _is_alive(pid):
        click.echo(f"Store with PID {pid} already exited")
        _clear_pid()
        return

    click.echo(f"Stopping store with PID {pid}...")
    os.kill(pid, signal.SIGTERM)

    deadline = time.monotonic() + SHUTDOWN_WAIT
    while _is_alive(pid) and time.monotonic() < deadline:
        time.sleep(POLL_INTERVAL)

    if _is_alive(pid):
        click.echo("Store did not exit on SIGTERM, force killing...")
        os.kill(pid, signal.SIGKILL)

    _clear_pid()
    click.echo("Store stopped")


@cli.command()
def status():
    """Check if the booking store is running."""
    pid = _read_pid()
    if pid is None:
        click.echo("Store is not running")
    elif _is_alive(pid):
        click.echo(f"Store is running with PID {pid}")
        click.echo(f"Database: {DB_PATH}")
    else:
        click.echo(f"PID file names {pid} but no such process; run 'stop' to clear it")


@cli.command()
@click.confirmation_option(prompt='Erase all bookings and drivers?')
def reset():
    """Empty the database, keeping a .bak copy of the old one."""
    if not os.path.exists(DB_PATH):
        click.echo(f"Database file not found: {DB_PATH}")
        return

    backup_path = f"{DB_PATH}.bak"
    try:
        shutil.copyfile(DB_PATH, backup_path)
        write_db(empty_db(), DB_PATH)
    except OSError as e:
        raise click.ClickException(f"Error resetting database: {e}")

    click.echo(f"Database reset. Backup created at {backup_path}")


if __name__ == '__main__':
    cli()
