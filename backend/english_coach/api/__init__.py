"""HTTP and WebSocket routers."""

from . import auth, calls, dashboard

__all__ = ["auth", "calls", "dashboard"]
