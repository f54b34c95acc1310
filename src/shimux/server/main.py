"""FastAPI server that owns the pane registry."""
import logging
import os
import signal
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI

import uvicorn

from . import state
from .routers import layout, pane, rpc, session
from ..config import get_config
from ..shim import install_shim


def setup_logging():
    """Configure logging for the application."""
    # Environment wins over the config file so `shimux --log-level` works
    log_level = os.getenv('SHIMUX_LOG_LEVEL', get_config().logging.level).upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),  # Console output
        ]
    )

    # Set specific loggers to appropriate levels
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)  # Reduce HTTP noise
    logging.getLogger('uvicorn.error').setLevel(logging.INFO)

    logging.getLogger('shimux').setLevel(getattr(logging, log_level, logging.INFO))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    setup_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting shimux server...")

    # Startup
    state.server_dir.mkdir(exist_ok=True)
    (state.server_dir / "server.pid").write_text(str(os.getpid()))

    install_shim(state.shim_dir())
    if state.registry is None:
        state.reset()

    yield

    # Shutdown
    if state.registry is not None:
        state.registry.shutdown()

    (state.server_dir / "server.pid").unlink(missing_ok=True)


app = FastAPI(title="shimux server", lifespan=lifespan)

# Include routers
app.include_router(rpc.router, prefix="/rpc", tags=["rpc"])
app.include_router(pane.router, prefix="/pane", tags=["pane"])
app.include_router(session.router, prefix="/session", tags=["session"])
app.include_router(layout.router, tags=["layout"])


@app.get("/")
async def root():
    """Server info."""
    return {
        "status": "running",
        "pid": os.getpid(),
        "panes": len(state.registry) if state.registry is not None else 0,
        "live": len(state.registry.list_panes()) if state.registry is not None else 0,
        "shim_dir": str(state.shim_dir()),
    }


def cleanup_and_exit(signum=None, frame=None):
    """Clean up and exit gracefully."""
    print("\nCleaning up...")
    if state.registry is not None:
        state.registry.shutdown()
    (state.server_dir / "server.pid").unlink(missing_ok=True)
    sys.exit(0)


def run_server():
    """Run the server on HTTP port."""
    # Set up signal handlers for graceful shutdown
    signal.signal(signal.SIGINT, cleanup_and_exit)
    signal.signal(signal.SIGTERM, cleanup_and_exit)

    config = get_config()
    try:
        uvicorn.run(app, host=config.server.host, port=config.server.port)
    except KeyboardInterrupt:
        pass  # cleanup_and_exit will be called by signal handler
    finally:
        # Ensure cleanup happens even on unexpected exits
        cleanup_and_exit()


if __name__ == "__main__":
    run_server()
