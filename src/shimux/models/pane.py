"""Pane model for shimux."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel, Field

PANE_ID_PREFIX = "%emacs-"
LEADER_PANE_ID = "%0"


class Surface(Protocol):
    """What the registry needs from a terminal session handle."""

    @property
    def surface_alive(self) -> bool: ...

    @property
    def running(self) -> bool: ...

    def write(self, text: str) -> None: ...

    def interrupt(self) -> None: ...

    def set_indicator(self, title: str, color: str) -> None: ...

    def set_on_exit(self, callback) -> None: ...

    def kill(self) -> None: ...


class PaneStatus(str, Enum):
    RUNNING = "running"
    FINISHED = "finished"
    DEAD = "dead"


def format_pane_id(seq: int) -> str:
    return f"{PANE_ID_PREFIX}{seq}"


def parse_pane_seq(pane_id: str) -> Optional[int]:
    """Return the allocation number in a pane id, or None if it isn't one of ours."""
    if not pane_id.startswith(PANE_ID_PREFIX):
        return None
    try:
        seq = int(pane_id[len(PANE_ID_PREFIX):])
    except ValueError:
        return None
    # int() also takes "01", " 1", "+1" and "0_1"; only the canonical spelling names a pane
    if format_pane_id(seq) != pane_id:
        return None
    return seq


@dataclass
class Pane:
    """A spawned terminal session and its metadata."""

    seq: int
    terminal: Surface
    name: Optional[str] = None
    title: str = ""
    color: str = ""
    created: datetime = field(default_factory=datetime.now)
    finished: bool = False

    @property
    def id(self) -> str:
        return format_pane_id(self.seq)

    @property
    def live(self) -> bool:
        return self.terminal.surface_alive

    @property
    def status(self) -> PaneStatus:
        if not self.live:
            return PaneStatus.DEAD
        if self.finished:
            return PaneStatus.FINISHED
        return PaneStatus.RUNNING

    @property
    def label(self) -> str:
        return self.title or self.id


class PaneRow(BaseModel):
    """One dashboard line."""

    id: str = Field(..., description="Pane ID (%emacs-N)")
    name: str = Field("", description="Name given at creation")
    title: str = Field("", description="Pane title")
    color: str = Field("", description="Accent color")
    status: PaneStatus = Field(..., description="running, finished or dead")
    created: datetime = Field(..., description="Creation time")

    @classmethod
    def from_pane(cls, pane: Pane) -> "PaneRow":
        return cls(
            id=pane.id,
            name=pane.name or "",
            title=pane.title,
            color=pane.color,
            status=pane.status,
            created=pane.created,
        )
