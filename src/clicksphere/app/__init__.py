"""
Application Service Layer

Bridges the web adapter and the counter core.

Key components:
- sync: request operations and the advisory re-broadcast path
- configuration: environment-aware settings and logging setup
"""

from .configuration import ApplicationConfig, Environment, configure_logging, get_config, set_config
from .sync import SyncProtocolAdapter

__all__ = [
    "SyncProtocolAdapter",
    "ApplicationConfig",
    "Environment",
    "configure_logging",
    "get_config",
    "set_config",
]
