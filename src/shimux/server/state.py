"""Global state management for shimux server."""
import os
from pathlib import Path
from typing import Optional

from ..config import Config, get_config
from ..display import Display, VirtualDisplay
from ..layout import LayoutEngine
from ..navigation import Navigator
from ..registry import Launcher, PaneRegistry
from ..terminal import launch_terminal

server_dir = Path(f"/tmp/shimux-{os.getenv('USER', 'nobody')}")

registry: Optional[PaneRegistry] = None
layout: Optional[LayoutEngine] = None
navigator: Optional[Navigator] = None


def shim_dir(config: Optional[Config] = None) -> Path:
    """Directory the tmux shim is installed into."""
    config = config or get_config()
    if config.launch.shim_dir:
        return Path(config.launch.shim_dir).expanduser()
    return server_dir / "bin"


def server_url(config: Optional[Config] = None) -> str:
    config = config or get_config()
    return f"http://{config.server.host}:{config.server.port}"


def reset(launcher: Optional[Launcher] = None, display: Optional[Display] = None,
          config: Optional[Config] = None) -> PaneRegistry:
    """Create a fresh registry, layout engine and navigator."""
    global registry, layout, navigator
    config = config or get_config()
    if registry is not None:
        registry.shutdown()
    registry = PaneRegistry(
        launcher=launcher or launch_terminal,
        display=display or VirtualDisplay(config.layout.display_width),
    )
    layout = LayoutEngine(registry, min_column_width=config.layout.min_column_width)
    navigator = Navigator(registry)
    return registry
