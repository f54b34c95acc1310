"""shimux: run tmux-driven tools against PTY panes you own."""

__version__ = "0.1.0"
