"""
ClickSphere Realtime Module

Connection registry and fan-out of counter changes to live clients.
"""

from .hub import BroadcastHub, Connection, ConnectionClosed, ConnectionState

__all__ = ["BroadcastHub", "Connection", "ConnectionClosed", "ConnectionState"]
