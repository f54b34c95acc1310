"""Move focus between live panes."""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .models.pane import Pane
from .registry import PaneRegistry

logger = logging.getLogger(__name__)

# Receives (label, pane_id) candidates, returns the chosen label or None
Chooser = Callable[[List[Tuple[str, str]]], Optional[str]]


@dataclass
class NavigationResult:
    status: str  # "focused", "no-panes" or "cancelled"
    pane_id: Optional[str] = None


def candidates(panes: List[Pane]) -> List[Tuple[str, str]]:
    """Labels for a pane picker: the title if set, else the id.

    Repeated titles get the id appended so every label picks one pane.
    """
    counts = {}
    for pane in panes:
        counts[pane.label] = counts.get(pane.label, 0) + 1
    result = []
    for pane in panes:
        label = pane.label
        if counts[label] > 1:
            label = f"{label} ({pane.id})"
        result.append((label, pane.id))
    return result


class Navigator:
    """Next, previous and select over live panes in ascending id order."""

    def __init__(self, registry: PaneRegistry):
        self.registry = registry

    def _step(self, offset: int) -> NavigationResult:
        with self.registry.lock:
            panes = self.registry.live_panes()
            if not panes:
                return NavigationResult(status="no-panes")

            display = self.registry.display
            focused = display.focused_surface()
            index = next((i for i, p in enumerate(panes) if p.terminal is focused), None)
            if index is None:
                target = panes[0]
            else:
                target = panes[(index + offset) % len(panes)]
            display.focus(target.terminal)
        logger.debug(f"Focused {target.id}")
        return NavigationResult(status="focused", pane_id=target.id)

    def next(self) -> NavigationResult:
        return self._step(1)

    def prev(self) -> NavigationResult:
        return self._step(-1)

    def candidates(self) -> List[Tuple[str, str]]:
        return candidates(self.registry.live_panes())

    def focus(self, pane_id: str) -> NavigationResult:
        """Focus a pane by id; a pane that isn't live counts as no selection."""
        with self.registry.lock:
            pane = self.registry.get(pane_id)
            if pane is None or not pane.live:
                return NavigationResult(status="cancelled")
            self.registry.display.focus(pane.terminal)
        return NavigationResult(status="focused", pane_id=pane_id)

    def select(self, choose: Chooser) -> NavigationResult:
        options = self.candidates()
        if not options:
            return NavigationResult(status="no-panes")
        label = choose(options)
        by_label = dict(options)
        if label is None or label not in by_label:
            return NavigationResult(status="cancelled")
        return self.focus(by_label[label])

    def focused_pane(self) -> Optional[str]:
        surface = self.registry.display.focused_surface()
        if surface is None:
            return None
        pane = self.registry.find_by_surface(surface)
        return pane.id if pane and pane.live else None
