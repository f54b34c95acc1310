"""PTY-backed terminal sessions."""
import logging
import os
import pty
import re
import signal
import subprocess
import threading
from collections import deque
from typing import Callable, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]|\x1b\][^\x07]*\x07|\x1b[@-_]")


class LaunchError(RuntimeError):
    """The session launcher could not start a process."""


class RollingBuffer:
    """Thread-safe tail of a terminal's output, one entry per line."""

    def __init__(self, max_lines: int = 5000):
        self._lines: deque = deque(maxlen=max_lines)
        self._partial = ""
        self._lock = threading.Lock()

    def append_text(self, text: str) -> None:
        text = _ANSI_RE.sub("", text).replace("\r\n", "\n").replace("\r", "")
        with self._lock:
            parts = (self._partial + text).split("\n")
            self._partial = parts.pop()
            self._lines.extend(parts)

    def tail(self, count: int) -> List[str]:
        """Return up to ``count`` most recent lines, including an unterminated one."""
        with self._lock:
            lines = list(self._lines)
            if self._partial:
                lines.append(self._partial)
        if count <= 0:
            return []
        return lines[-count:]


class Terminal:
    """One pseudo-terminal session and its rendering surface.

    The process runs in its own session, so its pid is also its process
    group id. The surface stands in for the host's terminal view: once it
    is destroyed the terminal is no longer live, whether or not anything
    still refers to it.
    """

    def __init__(self, command: Sequence[str], cwd: Optional[str] = None,
                 env: Optional[Mapping[str, str]] = None):
        self.command = list(command)
        self.cwd = cwd
        self.env = dict(env) if env is not None else None
        self.buffer = RollingBuffer()
        self.indicator = ("", "")
        self.exit_code: Optional[int] = None

        self._master_fd = -1
        self._proc: Optional[subprocess.Popen] = None
        self._surface_alive = False
        self._on_exit: Optional[Callable[[Optional[int]], None]] = None
        self._exited = threading.Event()

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc else None

    def set_on_exit(self, callback: Callable[[Optional[int]], None]) -> None:
        """Register the callback the exit watcher calls once the process ends.

        If the process already ended, the callback runs immediately.
        """
        self._on_exit = callback
        if self._exited.is_set():
            callback(self.exit_code)

    def start(self) -> None:
        """Spawn the command on a fresh pty."""
        master_fd, slave_fd = pty.openpty()

        env = dict(os.environ)
        if self.env is not None:
            env.update(self.env)
        env["TERM"] = "xterm-256color"

        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                cwd=self.cwd,
                env=env,
                start_new_session=True,
            )
        except OSError as e:
            os.close(master_fd)
            raise LaunchError(f"Failed to launch {' '.join(self.command)}: {e}") from e
        finally:
            os.close(slave_fd)

        self._master_fd = master_fd
        self._surface_alive = True

        threading.Thread(target=self._read_loop, name=f"pty-reader-{self.pid}",
                         daemon=True).start()
        threading.Thread(target=self._watch_exit, name=f"pty-exit-{self.pid}",
                         daemon=True).start()

        logger.info(f"Terminal started: pid={self.pid} cmd={' '.join(self.command)}")

    def _read_loop(self) -> None:
        while True:
            try:
                data = os.read(self._master_fd, 4096)
            except OSError:
                break
            if not data:
                break
            self.buffer.append_text(data.decode("utf-8", errors="replace"))

    def _watch_exit(self) -> None:
        self.exit_code = self._proc.wait()
        self._exited.set()
        logger.info(f"Terminal pid={self.pid} exited (code={self.exit_code})")
        if self._on_exit:
            try:
                self._on_exit(self.exit_code)
            except Exception:
                logger.exception(f"Exit callback failed for pid={self.pid}")

    @property
    def running(self) -> bool:
        return self._proc is not None and not self._exited.is_set()

    @property
    def surface_alive(self) -> bool:
        return self._surface_alive

    def write(self, text: str) -> None:
        """Write raw text to the terminal's input."""
        os.write(self._master_fd, text.encode())

    def interrupt(self) -> None:
        """Send SIGINT to the session's process group."""
        if not self.running:
            # Reaped; the pgid may belong to someone else now
            return
        try:
            os.killpg(self._proc.pid, signal.SIGINT)
        except ProcessLookupError:
            logger.debug(f"Process group {self.pid} already gone")

    def set_indicator(self, title: str, color: str) -> None:
        self.indicator = (title, color)

    def tail(self, count: int) -> List[str]:
        return self.buffer.tail(count)

    def kill(self) -> None:
        """Kill the process group, reap it and close the pty."""
        self._surface_alive = False
        if self._proc is None:
            return
        if self.running:
            try:
                os.killpg(self._proc.pid, signal.SIGKILL)
                logger.info(f"Killed terminal pid={self.pid}")
            except ProcessLookupError:
                logger.debug(f"Process group {self.pid} already gone")
            self._exited.wait(timeout=2)
        if self._master_fd >= 0:
            try:
                os.close(self._master_fd)
            except OSError:
                pass
            self._master_fd = -1

    def destroy_surface(self) -> None:
        """Tear down the view, taking the process with it."""
        self.kill()


def launch_terminal(command: Optional[Sequence[str]] = None, cwd: Optional[str] = None,
                    env: Optional[Mapping[str, str]] = None) -> Terminal:
    """Default session launcher: start ``command`` (or the configured shell)."""
    if command is None:
        from .config import get_config
        command = [get_config().launch.shell]
    terminal = Terminal(command, cwd=cwd, env=env)
    terminal.start()
    return terminal
