"""Session model for shimux."""
from pydantic import BaseModel, Field


class Session(BaseModel):
    """A registered multiplexer session."""

    name: str = Field(..., description="Session name")
    leader: str = Field("%0", description="Leader pane ID")
