"""Session endpoints."""
import functools
import logging
import shlex
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .. import state
from ...config import get_config
from ...environment import carrier_for, session_environment, with_multiplexer_env
from ...models.session import Session
from ...terminal import LaunchError, launch_terminal

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionStart(BaseModel):
    """Start a subagent session request."""
    command: Optional[List[str]] = None
    name: Optional[str] = None
    cwd: Optional[str] = None


class SessionStarted(BaseModel):
    """A started session."""
    pane_id: str
    command: List[str]


@router.get("/", response_model=List[Session])
async def list_sessions():
    return [Session(name=name) for name in state.registry.sessions.names()]


@router.post("/start", response_model=SessionStarted)
async def start_session(request: SessionStart):
    """Launch the subagent command in a new pane, inside a fake tmux."""
    config = get_config()
    command = request.command or shlex.split(config.launch.session_command)

    try:
        carrier = carrier_for(config.launch.backend)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    environment = session_environment(config, state.server_url(config), str(state.shim_dir(config)))
    launch = with_multiplexer_env(launch_terminal, carrier, environment)

    try:
        pane_id = state.registry.create_pane(
            request.name or command[0],
            launcher=functools.partial(launch, command, cwd=request.cwd),
        )
    except (LaunchError, OSError) as e:
        logger.error(f"Failed to start session {command}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    state.navigator.focus(pane_id)
    return SessionStarted(pane_id=pane_id, command=command)
