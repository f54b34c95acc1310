"""Shared test fixtures."""
import pytest

from shimux.config import Config, set_config
from shimux.display import VirtualDisplay
from shimux.layout import LayoutEngine
from shimux.navigation import Navigator
from shimux.registry import PaneRegistry
from shimux.terminal import LaunchError


class FakeTerminal:
    """Stands in for a PTY session; records what the registry does to it."""

    def __init__(self):
        self.surface_alive = True
        self.running = True
        self.written = []
        self.interrupts = 0
        self.killed = False
        self.indicator = ("", "")
        self.lines = []
        self._on_exit = None

    def write(self, text):
        self.written.append(text)

    def interrupt(self):
        self.interrupts += 1

    def set_indicator(self, title, color):
        self.indicator = (title, color)

    def set_on_exit(self, callback):
        self._on_exit = callback

    def exit(self, code=0):
        """Simulate the process terminating on its own."""
        self.running = False
        self._on_exit(code)

    def kill(self):
        self.surface_alive = False
        self.killed = True
        self.running = False

    def destroy_surface(self):
        self.kill()

    def tail(self, count):
        return self.lines[-count:] if count > 0 else []


class FakeLauncher:
    """Launcher producing FakeTerminals, optionally failing."""

    def __init__(self):
        self.terminals = []
        self.fail = False

    def __call__(self):
        if self.fail:
            raise LaunchError("no such command")
        terminal = FakeTerminal()
        self.terminals.append(terminal)
        return terminal


@pytest.fixture
def make_terminal():
    return FakeTerminal


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def display():
    return VirtualDisplay(width=240)


@pytest.fixture
def registry(launcher, display):
    return PaneRegistry(launcher=launcher, display=display)


@pytest.fixture
def layout(registry):
    return LayoutEngine(registry, min_column_width=80)


@pytest.fixture
def navigator(registry):
    return Navigator(registry)


@pytest.fixture
def default_config():
    """Use default configuration, restoring whatever was loaded before."""
    from shimux import config as config_module
    original = config_module._config
    config = Config()
    set_config(config)
    yield config
    set_config(original)


@pytest.fixture
def server_state(launcher, default_config):
    """Fresh server state backed by fake terminals."""
    from shimux.server import state

    state.reset(launcher=launcher, display=VirtualDisplay(width=240), config=default_config)
    yield state
    state.registry.shutdown()
    state.registry = None
    state.layout = None
    state.navigator = None
