"""Host display model: a single row of viewports showing terminal surfaces."""
import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from .models.pane import Surface

logger = logging.getLogger(__name__)


@dataclass
class Viewport:
    """A region of the display showing at most one surface."""
    width: int
    surface: Optional[Surface] = None


@dataclass
class LayoutSnapshot:
    """A captured viewport arrangement."""
    viewports: List[Viewport]
    focus: int


class Display(Protocol):
    """What the layout engine and navigation need from the host display."""

    width: int

    def viewports(self) -> List[Viewport]: ...

    def focused_surface(self) -> Optional[Surface]: ...

    def focus(self, surface: Surface) -> None: ...

    def clear(self) -> None: ...

    def split(self, count: int) -> List[Viewport]: ...

    def show(self, viewport: Viewport, surface: Surface) -> None: ...

    def balance(self) -> None: ...

    def capture(self) -> LayoutSnapshot: ...

    def restore(self, snapshot: LayoutSnapshot) -> None: ...

    def ensure_visible(self, surface: Surface) -> None: ...

    def drop(self, surface: Surface) -> None: ...

    def resize(self, width: int) -> None: ...


def equal_widths(total: int, count: int) -> List[int]:
    """Split ``total`` columns into ``count`` widths differing by at most one."""
    if count <= 0:
        return []
    base, extra = divmod(total, count)
    return [base + 1 if i < extra else base for i in range(count)]


class VirtualDisplay:
    """In-memory display.

    There is always at least one viewport, as in any real window system;
    ``clear`` leaves a single empty one behind which ``split`` reuses.
    """

    def __init__(self, width: int = 240):
        self.width = width
        self._viewports: List[Viewport] = [Viewport(width)]
        self._focus = 0

    def viewports(self) -> List[Viewport]:
        return list(self._viewports)

    def focused_viewport(self) -> Viewport:
        return self._viewports[self._focus]

    def focused_surface(self) -> Optional[Surface]:
        return self.focused_viewport().surface

    def _index_of(self, surface: Surface) -> Optional[int]:
        for i, viewport in enumerate(self._viewports):
            if viewport.surface is surface:
                return i
        return None

    def focus(self, surface: Surface) -> None:
        """Focus the viewport showing ``surface``, showing it first if needed."""
        index = self._index_of(surface)
        if index is None:
            self.focused_viewport().surface = surface
            index = self._focus
        self._focus = index

    def clear(self) -> None:
        self._viewports = [Viewport(self.width)]
        self._focus = 0

    def split(self, count: int) -> List[Viewport]:
        """Turn the arrangement into ``count`` side-by-side viewports.

        Existing viewports are kept from the left; surplus ones are removed.
        """
        count = max(1, count)
        while len(self._viewports) < count:
            self._viewports.append(Viewport(0))
        del self._viewports[count:]
        self._focus = min(self._focus, count - 1)
        self.balance()
        return self.viewports()

    def show(self, viewport: Viewport, surface: Surface) -> None:
        viewport.surface = surface

    def balance(self) -> None:
        for viewport, width in zip(self._viewports, equal_widths(self.width, len(self._viewports))):
            viewport.width = width

    def capture(self) -> LayoutSnapshot:
        viewports = [Viewport(v.width, v.surface) for v in self._viewports]
        return LayoutSnapshot(viewports=viewports, focus=self._focus)

    def restore(self, snapshot: LayoutSnapshot) -> None:
        restored = []
        for viewport in snapshot.viewports:
            surface = viewport.surface
            if surface is not None and not surface.surface_alive:
                surface = None
            restored.append(Viewport(viewport.width, surface))
        self._viewports = restored or [Viewport(self.width)]
        self._focus = min(snapshot.focus, len(self._viewports) - 1)

    def ensure_visible(self, surface: Surface) -> None:
        """Show ``surface`` somewhere: an empty viewport, else the focused one."""
        if self._index_of(surface) is not None:
            return
        for viewport in self._viewports:
            if viewport.surface is None or not viewport.surface.surface_alive:
                viewport.surface = surface
                return
        self.focused_viewport().surface = surface

    def drop(self, surface: Surface) -> None:
        """Remove every viewport showing ``surface``, keeping at least one."""
        if self._index_of(surface) is None:
            return
        focused = self._viewports[self._focus]
        kept = [v for v in self._viewports if v.surface is not surface]
        if not kept:
            kept = [Viewport(self.width)]
        self._viewports = kept
        self._focus = next((i for i, v in enumerate(kept) if v is focused), 0)
        logger.debug(f"Dropped surface from display, {len(kept)} viewports remain")

    def resize(self, width: int) -> None:
        self.width = max(1, width)
        self.balance()
