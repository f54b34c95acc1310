"""Pane inspection endpoints for the dashboard."""
from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from .. import state
from ...models.pane import PaneRow

router = APIRouter()


class PaneOutput(BaseModel):
    """Tail of a pane's output."""
    pane_id: str
    lines: List[str]


class SurfaceClose(BaseModel):
    """Close surface request."""
    pane_id: str


@router.get("/", response_model=List[PaneRow])
async def dashboard():
    """Every registered pane with its status, dead ones included."""
    return state.registry.dashboard()


@router.get("/output", response_model=PaneOutput)
async def output(pane_id: str, lines: int = 200):
    return PaneOutput(pane_id=pane_id, lines=state.registry.output(pane_id, lines))


@router.post("/close-surface")
def close_surface(request: SurfaceClose):
    """Destroy a pane's view without unregistering it."""
    state.registry.close_surface(request.pane_id)
    return {"status": "closed", "pane": request.pane_id}
