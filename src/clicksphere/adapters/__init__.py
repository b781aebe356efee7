"""
ClickSphere Web Adapters

Glue between the HTTP/SSE transport and the counter core.
"""

from .fasthtml import create_app, event_stream, register_routes

__all__ = ["create_app", "event_stream", "register_routes"]
