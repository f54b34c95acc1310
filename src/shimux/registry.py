"""Pane registry and session table.

Every pane the shim creates lives here under a ``%emacs-N`` id. Callers
speak a protocol with no error channel, so addressing an id that was never
created, was killed, or whose surface has gone away is never an error: the
operation does nothing and reports success. Only a failed launch escapes.

All access to the pane map goes through one lock. Process-exit
notifications arrive on terminal watcher threads and take the same lock to
flip ``finished``.
"""
import logging
import threading
from typing import Callable, Dict, List, Optional, Set

from .display import Display
from .models.pane import LEADER_PANE_ID, Pane, PaneRow, Surface, format_pane_id, parse_pane_seq

logger = logging.getLogger(__name__)

Launcher = Callable[[], Surface]


class SessionTable:
    """Names of sessions the caller has asked us to create."""

    def __init__(self):
        self._names: Set[str] = set()
        self._lock = threading.Lock()

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._names

    def register(self, name: str) -> str:
        with self._lock:
            if name not in self._names:
                self._names.add(name)
                logger.info(f"Registered session {name!r}")
        return LEADER_PANE_ID

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._names)


class PaneRegistry:
    """Owns every pane, the id counter and the session table."""

    def __init__(self, launcher: Launcher, display: Display):
        self.launcher = launcher
        self.display = display
        self.sessions = SessionTable()
        self._panes: Dict[int, Pane] = {}
        self._next_seq = 1
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def _lookup(self, pane_id: str) -> Optional[Pane]:
        seq = parse_pane_seq(pane_id)
        if seq is None:
            return None
        return self._panes.get(seq)

    def _live(self, pane_id: str) -> Optional[Pane]:
        pane = self._lookup(pane_id)
        if pane is None or not pane.live:
            return None
        return pane

    def create_pane(self, name: Optional[str] = None, launcher: Optional[Launcher] = None) -> str:
        """Launch a terminal, register it and show it. Returns the new id.

        ``launcher`` overrides the registry's default for this one pane.
        """
        with self._lock:
            seq = self._next_seq
            self._next_seq += 1
            pane_id = format_pane_id(seq)

            # A launch failure propagates; seq stays consumed
            terminal = (launcher or self.launcher)()

            pane = Pane(seq=seq, terminal=terminal, name=name)
            self._panes[seq] = pane
            terminal.set_on_exit(lambda exit_code: self.mark_finished(pane_id))
            self.display.ensure_visible(terminal)

        logger.info(f"Created pane {pane_id}" + (f" ({name})" if name else ""))
        return pane_id

    def mark_finished(self, pane_id: str) -> None:
        """Record that a pane's process has terminated. Never removes anything."""
        with self._lock:
            pane = self._lookup(pane_id)
            if pane is None or pane.finished:
                return
            pane.finished = True
        logger.info(f"Pane {pane_id} finished")

    def send_keys(self, pane_id: str, text: str) -> None:
        with self._lock:
            pane = self._live(pane_id)
            if pane is None:
                logger.debug(f"send_keys: {pane_id} not live, ignoring")
                return
            try:
                pane.terminal.write(text + "\n")
            except OSError as e:
                logger.debug(f"send_keys: write to {pane_id} failed: {e}")

    def interrupt(self, pane_id: str) -> None:
        with self._lock:
            pane = self._live(pane_id)
            if pane is None:
                logger.debug(f"interrupt: {pane_id} not live, ignoring")
                return
            try:
                pane.terminal.interrupt()
            except OSError as e:
                logger.debug(f"interrupt: signalling {pane_id} failed: {e}")

    def set_info(self, pane_id: str, title: str, color: str) -> None:
        with self._lock:
            pane = self._lookup(pane_id)
            if pane is None:
                return
            pane.title = title
            pane.color = color
            if pane.live:
                pane.terminal.set_indicator(title, color)

    def kill_pane(self, pane_id: str) -> None:
        """Release a pane and forget it. Unknown ids are fine."""
        with self._lock:
            seq = parse_pane_seq(pane_id)
            pane = self._panes.pop(seq, None) if seq is not None else None
            if pane is None:
                logger.debug(f"kill_pane: {pane_id} not registered")
                return
            try:
                pane.terminal.kill()
            except OSError as e:
                logger.debug(f"kill_pane: releasing {pane_id} failed: {e}")
            self.display.drop(pane.terminal)
            self.display.balance()
        logger.info(f"Killed pane {pane_id}")

    def close_surface(self, pane_id: str) -> None:
        """Destroy a pane's view directly, leaving the entry registered."""
        with self._lock:
            pane = self._live(pane_id)
            if pane is None:
                return
            pane.terminal.destroy_surface()
            self.display.drop(pane.terminal)
            self.display.balance()
        logger.info(f"Surface of {pane_id} closed, pane is now dead")

    def list_panes(self) -> List[str]:
        """Ids of live panes in allocation order."""
        return [pane.id for pane in self.live_panes()]

    def live_panes(self) -> List[Pane]:
        with self._lock:
            return [self._panes[seq] for seq in sorted(self._panes) if self._panes[seq].live]

    def get(self, pane_id: str) -> Optional[Pane]:
        with self._lock:
            return self._lookup(pane_id)

    def find_by_surface(self, surface) -> Optional[Pane]:
        with self._lock:
            for pane in self._panes.values():
                if pane.terminal is surface:
                    return pane
        return None

    def dashboard(self) -> List[PaneRow]:
        """Every registered pane, dead ones included."""
        with self._lock:
            return [PaneRow.from_pane(self._panes[seq]) for seq in sorted(self._panes)]

    def output(self, pane_id: str, lines: int = 200) -> List[str]:
        with self._lock:
            pane = self._lookup(pane_id)
            if pane is None:
                return []
            tail = getattr(pane.terminal, "tail", None)
        return tail(lines) if tail else []

    def has_session(self, name: str) -> bool:
        return self.sessions.has(name)

    def register_session(self, name: str) -> str:
        return self.sessions.register(name)

    def shutdown(self) -> None:
        """Release every pane."""
        with self._lock:
            panes = list(self._panes.values())
            self._panes.clear()
        for pane in panes:
            try:
                pane.terminal.kill()
            except OSError as e:
                logger.debug(f"shutdown: releasing {pane.id} failed: {e}")
        logger.info(f"Registry shut down, released {len(panes)} panes")

    def __len__(self) -> int:
        with self._lock:
            return len(self._panes)
