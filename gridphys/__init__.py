"""Two-dimensional physics room with a spatial-grid broad phase, a tick runner and a WebSocket state server."""

__version__ = "0.1.0"
__all__ = ["engine", "protocol", "simulate", "server"]