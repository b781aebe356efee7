"""
Configuration Management for ClickSphere

Dataclass-based settings with per-environment presets, overridable from
CLICKSPHERE_* environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..core.counter import DEFAULT_COUNTER_NAME


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class StoreConfig:
    """Counter store configuration"""
    backend: str = "sql"
    database_url: str = "sqlite+aiosqlite:///clicksphere.db"
    echo: bool = False
    counter_name: str = DEFAULT_COUNTER_NAME
    connect_retries: int = 5
    connect_delay: float = 5.0


@dataclass
class HubConfig:
    """Broadcast hub configuration"""
    queue_size: int = 100
    heartbeat_interval: float = 15.0


@dataclass
class WebConfig:
    """Web server configuration"""
    host: str = "localhost"
    port: int = 3000
    secret_key: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class ApplicationConfig:
    """Complete application configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    store: StoreConfig = field(default_factory=StoreConfig)
    hub: HubConfig = field(default_factory=HubConfig)
    web: WebConfig = field(default_factory=WebConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> "ApplicationConfig":
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"

        elif environment == Environment.TESTING:
            config.store.backend = "memory"
            config.store.connect_retries = 0
            config.store.connect_delay = 0.0
            config.hub.heartbeat_interval = 1.0
            config.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.web.host = "0.0.0.0"
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_environment(cls) -> "ApplicationConfig":
        """Create configuration from environment variables"""
        environment = Environment(os.getenv("CLICKSPHERE_ENV", "development"))
        config = cls.for_environment(environment)

        if os.getenv("CLICKSPHERE_DEBUG"):
            config.debug = os.getenv("CLICKSPHERE_DEBUG").lower() == "true"

        if os.getenv("CLICKSPHERE_STORE"):
            config.store.backend = os.getenv("CLICKSPHERE_STORE")

        if os.getenv("CLICKSPHERE_DATABASE_URL"):
            config.store.database_url = os.getenv("CLICKSPHERE_DATABASE_URL")

        if os.getenv("CLICKSPHERE_COUNTER_NAME"):
            config.store.counter_name = os.getenv("CLICKSPHERE_COUNTER_NAME")

        if os.getenv("CLICKSPHERE_CONNECT_RETRIES"):
            config.store.connect_retries = int(os.getenv("CLICKSPHERE_CONNECT_RETRIES"))

        if os.getenv("CLICKSPHERE_CONNECT_DELAY"):
            config.store.connect_delay = float(os.getenv("CLICKSPHERE_CONNECT_DELAY"))

        if os.getenv("CLICKSPHERE_QUEUE_SIZE"):
            config.hub.queue_size = int(os.getenv("CLICKSPHERE_QUEUE_SIZE"))

        if os.getenv("CLICKSPHERE_HEARTBEAT_INTERVAL"):
            config.hub.heartbeat_interval = float(os.getenv("CLICKSPHERE_HEARTBEAT_INTERVAL"))

        if os.getenv("CLICKSPHERE_HOST"):
            config.web.host = os.getenv("CLICKSPHERE_HOST")

        if os.getenv("CLICKSPHERE_PORT"):
            config.web.port = int(os.getenv("CLICKSPHERE_PORT"))

        if os.getenv("CLICKSPHERE_SECRET_KEY"):
            config.web.secret_key = os.getenv("CLICKSPHERE_SECRET_KEY")

        if os.getenv("CLICKSPHERE_LOG_LEVEL"):
            config.logging.level = os.getenv("CLICKSPHERE_LOG_LEVEL").upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "store": {
                "backend": self.store.backend,
                "database_url": self.store.database_url,
                "echo": self.store.echo,
                "counter_name": self.store.counter_name,
                "connect_retries": self.store.connect_retries,
                "connect_delay": self.store.connect_delay,
            },
            "hub": {
                "queue_size": self.hub.queue_size,
                "heartbeat_interval": self.hub.heartbeat_interval,
            },
            "web": {
                "host": self.web.host,
                "port": self.web.port,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
            },
        }


def configure_logging(config: LoggingConfig) -> None:
    """Apply logging settings to the root logger"""
    logging.basicConfig(level=config.level, format=config.format)


# Global configuration management
_current_config: Optional[ApplicationConfig] = None


def set_config(config: ApplicationConfig):
    """Set the global configuration"""
    global _current_config
    _current_config = config


def get_config() -> ApplicationConfig:
    """Get the current global configuration"""
    global _current_config

    if _current_config is None:
        # Auto-create from environment if not set
        _current_config = ApplicationConfig.from_environment()

    return _current_config


__all__ = [
    "ApplicationConfig", "Environment", "StoreConfig", "HubConfig",
    "WebConfig", "LoggingConfig", "configure_logging", "set_config", "get_config",
]
