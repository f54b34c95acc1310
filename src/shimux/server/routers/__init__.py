"""API routers for the shimux server."""
