"""Data models for shimux."""
from .pane import (
    LEADER_PANE_ID,
    PANE_ID_PREFIX,
    Pane,
    PaneRow,
    PaneStatus,
    Surface,
    format_pane_id,
    parse_pane_seq,
)
from .session import Session

__all__ = [
    "LEADER_PANE_ID",
    "PANE_ID_PREFIX",
    "Pane",
    "PaneRow",
    "PaneStatus",
    "Session",
    "Surface",
    "format_pane_id",
    "parse_pane_seq",
]
