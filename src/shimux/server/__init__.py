"""shimux control server."""
