"""tmux command line, translated into shimux RPC calls.

Only the commands a tmux-driving tool needs are understood. Flags this
shim doesn't know are accepted and ignored, and so are unknown commands,
because the caller treats any failure as fatal.
"""
import itertools
import os
import re
import sys
from typing import Dict, List, Optional

import click

from ..api_client import APIError, api_call, rpc
from ..environment import SERVER_VAR
from ..models.pane import LEADER_PANE_ID

VERSION = "tmux 3.4"

_FORMAT_RE = re.compile(r"#\{([a-z_]+)\}")
_COLOR_RE = re.compile(r"(?:^|,)\s*fg=([#\w]+)")
_ENTER_KEYS = {"Enter", "C-m", "KPEnter"}

PASS_THROUGH = dict(ignore_unknown_options=True, allow_extra_args=True)


def server_url() -> str:
    url = os.environ.get(SERVER_VAR)
    if url:
        return url
    from ..config import get_config
    config = get_config()
    return f"http://{config.server.host}:{config.server.port}"


def call(name: str, /, **params) -> str:
    try:
        return rpc(server_url(), name, **params)
    except APIError as e:
        click.echo(f"shimux: {name} failed: {e.detail}", err=True)
        sys.exit(1)


def render_format(fmt: str, values: Dict[str, str]) -> str:
    """Expand ``#{name}`` references; unknown names expand to nothing."""
    return _FORMAT_RE.sub(lambda m: values.get(m.group(1), ""), fmt)


def pane_target(target: Optional[str]) -> str:
    """Reduce a tmux target such as ``main:0.%emacs-2`` to the pane id."""
    if not target:
        return os.environ.get("TMUX_PANE", LEADER_PANE_ID)
    index = target.find("%")
    return target[index:] if index >= 0 else target


def session_target(target: Optional[str]) -> str:
    name = (target or "").lstrip("=")
    return name.split(":", 1)[0]


def pane_values(pane_id: str) -> Dict[str, str]:
    return {
        "pane_id": pane_id,
        "session_name": os.environ.get("SHIMUX_SESSION", "shimux"),
        "window_index": "0",
        "pane_index": "0",
    }


class ShimGroup(click.Group):
    """Treats commands it doesn't know as successful no-ops."""

    def get_command(self, ctx, cmd_name):
        command = super().get_command(ctx, cmd_name)
        if command is None:
            return ignored
        return command


@click.command(context_settings=PASS_THROUGH, hidden=True)
def ignored():
    pass


@click.group(cls=ShimGroup, invoke_without_command=True, context_settings=PASS_THROUGH)
@click.option("-V", "show_version", is_flag=True, help="Print version")
@click.option("-L", "socket_name", default=None, hidden=True)
@click.option("-S", "socket_path", default=None, hidden=True)
@click.pass_context
def main(ctx, show_version, socket_name, socket_path):
    """tmux stand-in backed by shimux."""
    if show_version:
        click.echo(VERSION)
        ctx.exit(0)


def _strip_flags(args) -> List[str]:
    """Drop the tmux flags this shim ignores from in front of a shell command."""
    return list(itertools.dropwhile(lambda arg: arg.startswith("-"), args))


def _create(name: Optional[str], print_id: bool, fmt: Optional[str], command: List[str]) -> None:
    pane_id = call("create_pane", name=name)
    if command:
        call("send_keys", pane_id=pane_id, text=" ".join(command))
    if print_id:
        click.echo(render_format(fmt or "#{pane_id}", pane_values(pane_id)))


@main.command("split-window", context_settings=PASS_THROUGH)
@click.option("-P", "print_id", is_flag=True)
@click.option("-F", "fmt", default=None)
@click.option("-t", "target", default=None)
@click.option("-c", "start_directory", default=None)
@click.option("-l", "size", default=None)
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def split_window(print_id, fmt, target, start_directory, size, command):
    _create(None, print_id, fmt, _strip_flags(command))


@main.command("new-window", context_settings=PASS_THROUGH)
@click.option("-P", "print_id", is_flag=True)
@click.option("-F", "fmt", default=None)
@click.option("-n", "name", default=None)
@click.option("-t", "target", default=None)
@click.option("-c", "start_directory", default=None)
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def new_window(print_id, fmt, name, target, start_directory, command):
    _create(name, print_id, fmt, _strip_flags(command))


@main.command("send-keys", context_settings=PASS_THROUGH)
@click.option("-t", "target", default=None)
@click.option("-l", "literal", is_flag=True)
@click.argument("keys", nargs=-1, type=click.UNPROCESSED)
def send_keys(target, literal, keys):
    pane_id = pane_target(target)
    keys = list(keys)
    if keys == ["C-c"] and not literal:
        call("send_interrupt", pane_id=pane_id)
        return
    while keys and keys[-1] in _ENTER_KEYS and not literal:
        keys.pop()
    call("send_keys", pane_id=pane_id, text="".join(keys))


@main.command("kill-pane", context_settings=PASS_THROUGH)
@click.option("-t", "target", default=None)
def kill_pane(target):
    call("kill_pane", pane_id=pane_target(target))


@main.command("list-panes", context_settings=PASS_THROUGH)
@click.option("-F", "fmt", default=None)
@click.option("-t", "target", default=None)
@click.option("-a", "all_panes", is_flag=True)
def list_panes(fmt, target, all_panes):
    listing = call("list_panes")
    for pane_id in filter(None, listing.split("\n")):
        click.echo(render_format(fmt or "#{pane_id}", pane_values(pane_id)))


@main.command("select-pane", context_settings=PASS_THROUGH)
@click.option("-t", "target", default=None)
@click.option("-T", "title", default=None)
@click.option("-P", "style", default=None)
def select_pane(target, title, style):
    pane_id = pane_target(target)
    if title is None and style is None:
        try:
            api_call(server_url(), "POST", "/focus/select", data={"pane_id": pane_id})
        except APIError as e:
            click.echo(f"shimux: select-pane failed: {e.detail}", err=True)
            sys.exit(1)
        return
    color = ""
    if style:
        match = _COLOR_RE.search(style)
        color = match.group(1) if match else ""
    call("set_pane_info", pane_id=pane_id, title=title or "", color=color)


@main.command("has-session", context_settings=PASS_THROUGH)
@click.option("-t", "target", default=None)
def has_session(target):
    found = call("has_session", name=session_target(target)) == "true"
    sys.exit(0 if found else 1)


@main.command("new-session", context_settings=PASS_THROUGH)
@click.option("-s", "name", default=None)
@click.option("-P", "print_id", is_flag=True)
@click.option("-F", "fmt", default=None)
@click.option("-d", "detached", is_flag=True)
def new_session(name, print_id, fmt, detached):
    leader = call("register_session", name=name or "0")
    if print_id:
        click.echo(render_format(fmt or "#{pane_id}", pane_values(leader)))


@main.command("select-layout", context_settings=PASS_THROUGH)
def select_layout():
    call("rebalance")


@main.command("resize-pane", context_settings=PASS_THROUGH)
def resize_pane():
    call("rebalance")


@main.command("display-message", context_settings=PASS_THROUGH)
@click.option("-p", "print_message", is_flag=True)
@click.option("-t", "target", default=None)
@click.argument("message", nargs=-1, type=click.UNPROCESSED)
def display_message(print_message, target, message):
    if print_message:
        click.echo(render_format(" ".join(message), pane_values(pane_target(target))))


if __name__ == "__main__":
    main()
