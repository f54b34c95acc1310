"""Environment that makes a launched process believe it runs inside tmux.

The variable set is rebuilt for every launch and handed to an
``EnvironmentCarrier``: the piece that knows how the active terminal
backend passes an environment to the process it starts. The carrier only
applies the variables for the duration of one launcher call.
"""
import functools
import itertools
import logging
import os
from contextlib import contextmanager
from typing import Any, Callable, ContextManager, Dict, Iterator, Mapping, Optional, Protocol

from .models.pane import LEADER_PANE_ID

logger = logging.getLogger(__name__)

ENABLED_VAR = "SHIMUX_ENABLED"
DEBUG_VAR = "SHIMUX_DEBUG"
LAUNCH_ID_VAR = "SHIMUX_LAUNCH_ID"
SERVER_VAR = "SHIMUX_SERVER"

_launch_counter = itertools.count(1)


def next_launch_id() -> str:
    """Tag unique to one launch: our pid plus a per-process counter."""
    return f"{os.getpid()}-{next(_launch_counter)}"


def build_environment(shim_dir: str, server_url: str, debug: bool = False,
                      extra: Optional[Mapping[str, str]] = None,
                      path: Optional[str] = None) -> Dict[str, str]:
    """Variables for one launch. Fixed variables win over ``extra``."""
    if path is None:
        path = os.environ.get("PATH", "")
    env = dict(extra or {})
    env.update({
        "PATH": f"{shim_dir}{os.pathsep}{path}" if path else shim_dir,
        "TMUX": f"{shim_dir}/shimux,{os.getpid()},0",
        "TMUX_PANE": LEADER_PANE_ID,
        ENABLED_VAR: "1",
        DEBUG_VAR: "1" if debug else "0",
        LAUNCH_ID_VAR: next_launch_id(),
        SERVER_VAR: server_url,
    })
    return env


class EnvironmentCarrier(Protocol):
    """Delivers variables to whatever a launcher starts."""

    def carry(self, env: Mapping[str, str],
              kwargs: Dict[str, Any]) -> ContextManager[Dict[str, Any]]:
        """Context manager yielding the keyword arguments for the launcher call."""
        ...


class ExplicitEnvCarrier:
    """For launchers that accept an ``env`` mapping."""

    def __init__(self, keyword: str = "env"):
        self.keyword = keyword

    @contextmanager
    def carry(self, env: Mapping[str, str], kwargs: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        merged = dict(kwargs.get(self.keyword) or {})
        merged.update(env)
        yield {**kwargs, self.keyword: merged}


class ProcessEnvCarrier:
    """For launchers that inherit ``os.environ``; restores it afterwards."""

    @contextmanager
    def carry(self, env: Mapping[str, str], kwargs: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
        saved = {name: os.environ.get(name) for name in env}
        os.environ.update(env)
        try:
            yield kwargs
        finally:
            for name, value in saved.items():
                if value is None:
                    os.environ.pop(name, None)
                else:
                    os.environ[name] = value


_CARRIERS = {
    "pty": ExplicitEnvCarrier,
    "inherit": ProcessEnvCarrier,
}


def carrier_for(backend: str) -> EnvironmentCarrier:
    """Pick the carrier for a terminal backend."""
    try:
        return _CARRIERS[backend]()
    except KeyError:
        raise ValueError(f"Unknown terminal backend {backend!r}, expected one of {sorted(_CARRIERS)}") from None


def with_multiplexer_env(launcher: Callable[..., Any], carrier: EnvironmentCarrier,
                         environment: Callable[[], Dict[str, str]]) -> Callable[..., Any]:
    """Wrap ``launcher`` so each call runs with a freshly built environment."""

    @functools.wraps(launcher)
    def launch(*args, **kwargs):
        env = environment()
        logger.debug(f"Launching with {LAUNCH_ID_VAR}={env.get(LAUNCH_ID_VAR)}")
        with carrier.carry(env, kwargs) as call_kwargs:
            return launcher(*args, **call_kwargs)

    return launch


def session_environment(config, server_url: str, shim_dir: str) -> Callable[[], Dict[str, str]]:
    """Environment factory bound to the current configuration."""
    return functools.partial(
        build_environment,
        shim_dir,
        server_url,
        debug=config.launch.debug,
        extra=config.launch.extra_env,
    )
