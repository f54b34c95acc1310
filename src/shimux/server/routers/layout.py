"""Layout and focus endpoints for the interactive surface."""
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from .. import state

router = APIRouter()


class ViewportInfo(BaseModel):
    """One viewport of the display."""
    width: int
    pane_id: Optional[str] = None
    focused: bool = False


class LayoutInfo(BaseModel):
    """Current arrangement."""
    width: int
    viewports: List[ViewportInfo]
    snapshot: bool


class LayoutResponse(BaseModel):
    """Outcome of a layout command."""
    status: str
    shown: List[str] = []
    hidden: List[str] = []


class Resize(BaseModel):
    """Display resize request."""
    width: int


class Candidate(BaseModel):
    """A pane offered by the picker."""
    label: str
    pane_id: str


class Selection(BaseModel):
    """Picker answer: a label from the candidates, or a pane id."""
    label: Optional[str] = None
    pane_id: Optional[str] = None


class FocusResponse(BaseModel):
    """Outcome of a focus command."""
    status: str
    pane_id: Optional[str] = None


@router.get("/layout", response_model=LayoutInfo)
async def get_layout():
    registry = state.registry
    display = registry.display
    with registry.lock:
        focused = display.focused_surface()
        viewports = []
        for viewport in display.viewports():
            pane = registry.find_by_surface(viewport.surface) if viewport.surface else None
            viewports.append(ViewportInfo(
                width=viewport.width,
                pane_id=pane.id if pane and pane.live else None,
                focused=viewport.surface is not None and viewport.surface is focused,
            ))
    return LayoutInfo(width=display.width, viewports=viewports,
                      snapshot=state.layout.has_snapshot)


@router.post("/layout/show-all", response_model=LayoutResponse)
async def show_all():
    return LayoutResponse(**asdict(state.layout.show_all()))


@router.post("/layout/toggle", response_model=LayoutResponse)
async def toggle_all():
    return LayoutResponse(**asdict(state.layout.toggle_all()))


@router.post("/layout/resize", response_model=LayoutInfo)
async def resize(size: Resize):
    state.layout.resize(size.width)
    return await get_layout()


@router.post("/focus/next", response_model=FocusResponse)
async def focus_next():
    return FocusResponse(**asdict(state.navigator.next()))


@router.post("/focus/prev", response_model=FocusResponse)
async def focus_prev():
    return FocusResponse(**asdict(state.navigator.prev()))


@router.get("/focus/candidates", response_model=List[Candidate])
async def focus_candidates():
    return [Candidate(label=label, pane_id=pane_id)
            for label, pane_id in state.navigator.candidates()]


@router.post("/focus/select", response_model=FocusResponse)
async def focus_select(selection: Selection):
    if selection.pane_id is not None:
        return FocusResponse(**asdict(state.navigator.focus(selection.pane_id)))
    return FocusResponse(**asdict(state.navigator.select(lambda options: selection.label)))


@router.get("/focus", response_model=FocusResponse)
async def focused():
    pane_id = state.navigator.focused_pane()
    return FocusResponse(status="focused" if pane_id else "no-panes", pane_id=pane_id)
