"""RPC endpoints called by the tmux shim.

Every call answers with a single plain-text string. Addressing a pane that
doesn't exist (any more) still answers "ok".
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from .. import state
from ...terminal import LaunchError

logger = logging.getLogger(__name__)

router = APIRouter(default_response_class=PlainTextResponse)

OK = "ok"


class PaneCreate(BaseModel):
    """Create pane request."""
    name: Optional[str] = None


class PaneTarget(BaseModel):
    """Request addressing one pane."""
    pane_id: str


class SendKeys(PaneTarget):
    """Send keys request."""
    text: str


class PaneInfo(PaneTarget):
    """Set pane presentation request."""
    title: str = ""
    color: str = ""


class SessionName(BaseModel):
    """Request naming a session."""
    name: str


@router.post("/create_pane")
async def create_pane(pane: PaneCreate) -> str:
    try:
        return state.registry.create_pane(pane.name)
    except (LaunchError, OSError) as e:
        logger.error(f"Failed to create pane: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/send_keys")
async def send_keys(keys: SendKeys) -> str:
    state.registry.send_keys(keys.pane_id, keys.text)
    return OK


@router.post("/kill_pane")
def kill_pane(target: PaneTarget) -> str:
    state.registry.kill_pane(target.pane_id)
    return OK


@router.get("/list_panes")
async def list_panes() -> str:
    return "\n".join(state.registry.list_panes())


@router.post("/set_pane_info")
async def set_pane_info(info: PaneInfo) -> str:
    state.registry.set_info(info.pane_id, info.title, info.color)
    return OK


@router.post("/send_interrupt")
async def send_interrupt(target: PaneTarget) -> str:
    state.registry.interrupt(target.pane_id)
    return OK


@router.post("/has_session")
async def has_session(session: SessionName) -> str:
    return "true" if state.registry.has_session(session.name) else "false"


@router.post("/register_session")
async def register_session(session: SessionName) -> str:
    return state.registry.register_session(session.name)


@router.post("/rebalance")
async def rebalance() -> str:
    state.layout.rebalance()
    return OK
