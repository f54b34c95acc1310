"""Terminal UI for shimux."""
