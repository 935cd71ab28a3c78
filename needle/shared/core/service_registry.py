"""Service registry for cross-module access to initialized services."""

from __future__ import annotations

import atexit
import logging
from typing import Optional, TYPE_CHECKING, List, Callable

if TYPE_CHECKING:
    from needle.shared.infrastructure.api.client import ApiClient

logger = logging.getLogger(__name__)

# The one request pipeline shared by every store
_api_client: Optional["ApiClient"] = None

# Global cleanup management
_cleanup_registered = False
_cleanup_handlers: List[Callable[[], None]] = []


def set_api_client(client: Optional["ApiClient"]) -> None:
    """Set the global API client instance."""
    global _api_client
    _api_client = client


def get_api_client() -> Optional["ApiClient"]:
    """Get the global API client instance."""
    return _api_client


def register_cleanup_handler(handler: Callable[[], None]) -> None:
    """Register a cleanup handler to be called on application exit."""
    global _cleanup_registered
    if handler not in _cleanup_handlers:
        _cleanup_handlers.append(handler)
    if not _cleanup_registered:
        atexit.register(run_cleanup_handlers)
        _cleanup_registered = True
        logger.debug("Registered atexit cleanup handler")


def run_cleanup_handlers() -> None:
    """Run and forget every registered cleanup handler."""
    logger.info("Running application cleanup...")
    while _cleanup_handlers:
        handler = _cleanup_handlers.pop()
        try:
            handler()
        except Exception as e:
            logger.warning(f"Error in cleanup handler: {e}")
    logger.info("Application cleanup completed")
