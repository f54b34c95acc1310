"""A ``tmux`` look-alike that forwards to the shimux control server."""
import logging
import stat
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

SHIM_NAME = "tmux"


def install_shim(directory: Path) -> Path:
    """Write the ``tmux`` executable into ``directory`` and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    script = directory / SHIM_NAME
    script.write_text(
        "#!/bin/sh\n"
        f'exec "{sys.executable}" -m shimux.shim "$@"\n'
    )
    mode = script.stat().st_mode
    script.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    logger.info(f"Installed tmux shim at {script}")
    return script
