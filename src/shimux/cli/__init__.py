#!/usr/bin/env python3
"""Main CLI entry point for shimux."""
import os

import click

from .. import __version__
from ..connection import Connection
from .config import config
from .pane import register_pane_commands


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.version_option(__version__)
def cli(log_level):
    """Run tmux-driven tools against PTY panes owned by shimux."""
    os.environ['SHIMUX_LOG_LEVEL'] = log_level


@cli.group()
def server():
    """Manage the shimux server."""
    pass


@server.command("start")
def start():
    conn = Connection()
    if conn.start():
        click.echo(f"Server running at {conn.base_url} (PID: {conn.server_pid})")
    else:
        click.echo("Failed to start server", err=True)
        raise click.Abort()


@server.command("stop")
def stop():
    conn = Connection()
    if conn.stop():
        click.echo("Server stopped")
    else:
        click.echo("Failed to stop server", err=True)
        raise click.Abort()


@server.command("status")
def status():
    conn = Connection()
    if conn.is_running:
        click.echo(f"Server running at {conn.base_url} (PID: {conn.server_pid})")
        try:
            with conn.client() as api:
                data = api.get("/").json()
                sessions = api.get("/session/").json()
            click.echo(f"\nSessions: {len(sessions)}")
            click.echo(f"Panes: {data['panes']} ({data['live']} live)")
            click.echo(f"Shim directory: {data['shim_dir']}")
        except Exception as e:
            click.echo(f"Error querying server: {e}", err=True)
    else:
        click.echo("Server not running")


@cli.command()
def dashboard():
    """Open the pane dashboard."""
    from ..tui.app import run_tui
    run_tui()


cli.add_command(config)
register_pane_commands(cli)


if __name__ == "__main__":
    cli()
