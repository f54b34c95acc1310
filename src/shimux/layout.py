"""Tile live panes into a single row of equal-width viewports."""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .display import LayoutSnapshot
from .registry import PaneRegistry

logger = logging.getLogger(__name__)


@dataclass
class LayoutResult:
    """Outcome of a layout command."""
    status: str  # "tiled", "restored" or "no-panes"
    shown: List[str] = field(default_factory=list)
    hidden: List[str] = field(default_factory=list)


def column_count(display_width: int, min_column_width: int) -> int:
    """How many viewports of at least ``min_column_width`` fit across the display."""
    return max(1, display_width // max(1, min_column_width))


class LayoutEngine:
    """Show-all, toggle and rebalance over the registry's live panes.

    Tiling remembers the arrangement it replaced. Only the first tiling
    after a restore records it, so repeated show-all calls still undo back
    to what the user had.
    """

    def __init__(self, registry: PaneRegistry, min_column_width: int = 80):
        self.registry = registry
        self.min_column_width = min_column_width
        self._snapshot: Optional[LayoutSnapshot] = None

    @property
    def display(self):
        return self.registry.display

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    def show_all(self) -> LayoutResult:
        with self.registry.lock:
            panes = self.registry.live_panes()
            if not panes:
                return LayoutResult(status="no-panes")

            if self._snapshot is None:
                self._snapshot = self.display.capture()

            columns = column_count(self.display.width, self.min_column_width)
            to_show = min(columns, len(panes))

            self.display.clear()
            viewports = self.display.split(to_show)
            for viewport, pane in zip(viewports, panes):
                self.display.show(viewport, pane.terminal)

        shown = [pane.id for pane in panes[:to_show]]
        hidden = [pane.id for pane in panes[to_show:]]
        logger.info(f"Tiled {len(shown)} of {len(panes)} panes in {columns} columns")
        return LayoutResult(status="tiled", shown=shown, hidden=hidden)

    def restore(self) -> bool:
        """Put back the arrangement saved by the last tiling, once."""
        with self.registry.lock:
            if self._snapshot is None:
                return False
            snapshot, self._snapshot = self._snapshot, None
            self.display.restore(snapshot)
        logger.info("Restored layout")
        return True

    def toggle_all(self) -> LayoutResult:
        if self.restore():
            return LayoutResult(status="restored")
        return self.show_all()

    def rebalance(self) -> None:
        with self.registry.lock:
            self.display.balance()

    def resize(self, width: int) -> None:
        with self.registry.lock:
            self.display.resize(width)
