"""Connection to shimux server."""
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional

import httpx

from .config import get_config


class Connection:
    """Manages connection to shimux server."""

    def __init__(self):
        """Initialize connection."""
        config = get_config()
        self.user = os.getenv("USER", "nobody")
        self.server_dir = Path(f"/tmp/shimux-{self.user}")
        self.pid_file = self.server_dir / "server.pid"
        self.host = config.server.host
        self.port = config.server.port

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def server_pid(self) -> Optional[int]:
        """Get server PID if running."""
        try:
            if self.pid_file.exists():
                pid = int(self.pid_file.read_text().strip())
                # Check if process is actually running
                os.kill(pid, 0)
                return pid
        except (ValueError, ProcessLookupError, FileNotFoundError, PermissionError):
            pass
        return None

    @property
    def is_running(self) -> bool:
        """Check if server is running and answering."""
        if self.server_pid is None:
            return False
        try:
            return httpx.get(f"{self.base_url}/", timeout=1.0).status_code == 200
        except httpx.HTTPError:
            return False

    def start(self) -> bool:
        """Start the server."""
        if self.is_running:
            print(f"Server already running (PID: {self.server_pid})")
            return True

        self.server_dir.mkdir(exist_ok=True)

        # Start server in background
        subprocess.Popen(
            [sys.executable, "-m", "shimux.server"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True
        )

        # Wait for server to start
        for _ in range(30):
            if self.is_running:
                return True
            time.sleep(0.1)

        return False

    def stop(self) -> bool:
        """Stop the server."""
        pid = self.server_pid
        if not pid:
            print("Server not running")
            return True

        try:
            # Send SIGTERM
            os.kill(pid, 15)

            # Wait for graceful shutdown
            for _ in range(10):
                try:
                    os.kill(pid, 0)
                    time.sleep(0.1)
                except ProcessLookupError:
                    break
            else:
                # Force kill if still running
                os.kill(pid, 9)

            return True

        except ProcessLookupError:
            print("Server already stopped")
            return True
        except OSError as e:
            print(f"Error stopping server: {e}")
            return False

    def client(self) -> httpx.Client:
        """Get HTTP client for the server."""
        if not self.is_running:
            raise RuntimeError("Server not running")
        return httpx.Client(base_url=self.base_url, timeout=5.0)

    def async_client(self) -> httpx.AsyncClient:
        """Get async HTTP client for the server."""
        return httpx.AsyncClient(base_url=self.base_url, timeout=5.0)
