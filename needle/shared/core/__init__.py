"""
Shared Core Module
==================

Event system, configuration, and the service registry.
"""

# Event System
from .event_bus import EventBus, EventPayload, UnknownTopicError
from . import events

# Service Registry
from .service_registry import (
    get_api_client,
    set_api_client,
    register_cleanup_handler,
    run_cleanup_handlers,
)

# Configuration
from .configuration import (
    ConfigManager,
    SystemConfig,
    ApiConfig,
    StorageConfig,
    LoggingConfig,
    get_config_manager,
    get_config,
    ValidationLevel,
)

__all__ = [
    # Event System
    "EventBus",
    "EventPayload",
    "UnknownTopicError",
    "events",
    # Service Registry
    "get_api_client",
    "set_api_client",
    "register_cleanup_handler",
    "run_cleanup_handlers",
    # Configuration
    "ConfigManager",
    "SystemConfig",
    "ApiConfig",
    "StorageConfig",
    "LoggingConfig",
    "get_config_manager",
    "get_config",
    "ValidationLevel",
]
