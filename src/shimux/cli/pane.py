"""Pane, layout and session commands."""
import os

import click

from ..api_client import APIError, api_call, rpc
from ..config import get_config
from ..connection import Connection
from ..environment import build_environment
from ..server.state import shim_dir


def require_server() -> Connection:
    """Return a connection to a running server, starting one if allowed."""
    conn = Connection()
    if conn.is_running:
        return conn
    if not get_config().server.auto_start:
        click.echo("Server not running", err=True)
        raise click.Abort()
    click.echo("Server not running, starting automatically...", err=True)
    if not conn.start():
        click.echo("Failed to start server", err=True)
        raise click.Abort()
    return conn


def _api(method, path, data=None):
    conn = require_server()
    try:
        return api_call(conn.base_url, method, path, data=data)
    except APIError as e:
        click.echo(f"Request failed: {e.detail}", err=True)
        raise click.Abort()


def _rpc(name, /, **params):
    conn = require_server()
    try:
        return rpc(conn.base_url, name, **params)
    except APIError as e:
        click.echo(f"{name} failed: {e.detail}", err=True)
        raise click.Abort()


def _report_focus(result):
    if result["status"] == "no-panes":
        click.echo("No panes")
    elif result["status"] == "cancelled":
        click.echo("Nothing selected")
    else:
        click.echo(result["pane_id"])


@click.command("panes")
@click.option("--all", "show_all", is_flag=True, help="Include finished and dead panes")
def list_panes(show_all):
    """List panes."""
    rows = _api("GET", "/pane/")
    if not show_all:
        rows = [row for row in rows if row["status"] != "dead"]
    if not rows:
        click.echo("No panes")
        return
    for row in rows:
        label = row["title"] or row["name"]
        click.echo(f"{row['id']:<12} {row['status']:<9} {row['created'][:19]}  {label}")


@click.command("new")
@click.option("--name", default=None, help="Pane name")
def new_pane(name):
    """Create a pane running the configured shell."""
    click.echo(_rpc("create_pane", name=name))


@click.command("send")
@click.argument("pane_id")
@click.argument("text")
def send(pane_id, text):
    """Type TEXT and Enter into a pane."""
    _rpc("send_keys", pane_id=pane_id, text=text)


@click.command("kill")
@click.argument("pane_id")
def kill(pane_id):
    """Kill a pane."""
    _rpc("kill_pane", pane_id=pane_id)


@click.command("interrupt")
@click.argument("pane_id")
def interrupt(pane_id):
    """Send Ctrl-C to a pane's process group."""
    _rpc("send_interrupt", pane_id=pane_id)


@click.command("title")
@click.argument("pane_id")
@click.argument("title")
@click.option("--color", default="", help="Accent color")
def title(pane_id, title, color):
    """Set a pane's title and color."""
    _rpc("set_pane_info", pane_id=pane_id, title=title, color=color)


@click.command("show-all")
def show_all():
    """Tile live panes side by side."""
    result = _api("POST", "/layout/show-all")
    if result["status"] == "no-panes":
        click.echo("No panes")
        return
    click.echo(f"Showing {', '.join(result['shown'])}")
    if result["hidden"]:
        click.echo(f"Not shown (display too narrow): {', '.join(result['hidden'])}")


@click.command("toggle")
def toggle():
    """Tile panes, or restore the layout from before tiling."""
    result = _api("POST", "/layout/toggle")
    if result["status"] == "restored":
        click.echo("Layout restored")
    elif result["status"] == "no-panes":
        click.echo("No panes")
    else:
        click.echo(f"Showing {', '.join(result['shown'])}")


@click.command("next")
def next_pane():
    """Focus the next pane."""
    _report_focus(_api("POST", "/focus/next"))


@click.command("prev")
def prev_pane():
    """Focus the previous pane."""
    _report_focus(_api("POST", "/focus/prev"))


@click.command("select")
@click.argument("label", required=False)
def select(label):
    """Focus a pane by title or id, prompting when LABEL is omitted."""
    candidates = _api("GET", "/focus/candidates")
    if not candidates:
        click.echo("No panes")
        return
    if label is None:
        labels = [c["label"] for c in candidates]
        for i, choice in enumerate(labels, 1):
            click.echo(f"{i}) {choice}")
        index = click.prompt("Pane", type=click.IntRange(1, len(labels)))
        label = labels[index - 1]
    _report_focus(_api("POST", "/focus/select", data={"label": label}))


@click.command("start-session", context_settings=dict(ignore_unknown_options=True))
@click.option("--name", default=None, help="Pane name")
@click.option("--cwd", default=None, help="Working directory")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def start_session(name, cwd, command):
    """Launch the subagent command in a pane that looks like tmux to it."""
    result = _api("POST", "/session/start", data={
        "command": list(command) or None,
        "name": name,
        "cwd": cwd or os.getcwd(),
    })
    click.echo(f"Started {' '.join(result['command'])} in {result['pane_id']}")


@click.command("env")
def env():
    """Print the variables a started session receives."""
    config = get_config()
    conn = Connection()
    variables = build_environment(str(shim_dir(config)), conn.base_url, debug=config.launch.debug,
                                  extra=config.launch.extra_env)
    for name in sorted(variables):
        click.echo(f"{name}={variables[name]}")


@click.command("shim-dir")
def print_shim_dir():
    """Print the directory holding the tmux shim."""
    click.echo(shim_dir())


def register_pane_commands(group: click.Group) -> None:
    for command in (list_panes, new_pane, send, kill, interrupt, title, show_all, toggle,
                    next_pane, prev_pane, select, start_session, env, print_shim_dir):
        group.add_command(command)
