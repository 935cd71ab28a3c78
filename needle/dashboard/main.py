"""Needle dashboard - process startup and teardown.

``bootstrap`` builds the process-wide objects in dependency order:
config → logging → EventBus → CredentialHolder → Router → ApiClient → Store.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import httpx
from dotenv import load_dotenv

from needle.dashboard.router import Router
from needle.dashboard.state import Store
from needle.shared.core import events
from needle.shared.core.configuration import LoggingConfig, SystemConfig, get_config
from needle.shared.core.service_registry import (
    get_api_client,
    register_cleanup_handler,
    set_api_client,
)
from needle.shared.infrastructure.api.client import ApiClient
from needle.shared.infrastructure.credentials import CredentialHolder

logger = logging.getLogger(__name__)

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(config: LoggingConfig, data_dir: Path) -> Path:
    """Install the file and console handlers on the root logger.

    File handler: everything at ``config.level`` into a rotating log file.
    Console handler: only ``config.console_level`` and above.

    Returns:
        Path of the log file
    """
    log_file_path = data_dir / config.log_file
    log_file_path.parent.mkdir(parents=True, exist_ok=True)
    file_log_level = _LEVELS.get(config.level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(file_log_level)
    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(file_log_level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(_LEVELS.get(config.console_level.upper(), logging.WARNING))
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S"
    ))
    root_logger.addHandler(console_handler)

    # Suppress verbose third-party library logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("fletx").setLevel(logging.WARNING)

    logger.info(f"Logging configured: file={log_file_path}, console={config.console_level}+")
    return log_file_path


def _report_unclosed_client() -> None:
    # Runs from atexit, after the loop that owned the client has ended;
    # only shutdown() can still close it.
    client = get_api_client()
    if client is not None and not client.closed:
        logger.warning("Exiting without shutdown(), HTTP client left open")
    set_api_client(None)


async def bootstrap(
    config: Optional[SystemConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    setup_logging: bool = True,
    check_health: bool = True,
) -> Store:
    """Create every process-wide dashboard object and return the Store.

    Args:
        config: Explicit configuration; resolved from env/YAML when omitted
        transport: HTTP transport override, used by tests
        setup_logging: Install root log handlers
        check_health: Probe ``/health`` once and record the outcome
    """
    load_dotenv()
    config = config or get_config()
    data_dir = Path(config.storage.data_dir)

    if setup_logging:
        configure_logging(config.logging, data_dir)

    event_bus = events.create_event_bus()
    credentials = CredentialHolder(
        data_dir / config.storage.credential_file,
        key=config.storage.credential_key,
    )
    router = Router(credentials, event_bus=event_bus)
    api = ApiClient(
        config.api.base_url,
        credentials,
        event_bus=event_bus,
        on_unauthorized=router.redirect_to_login,
        timeout=config.api.timeout,
        transport=transport,
    )
    set_api_client(api)
    register_cleanup_handler(_report_unclosed_client)

    store = Store.initialize(event_bus, api, credentials, router)
    await store.bind()
    logger.info(f"Dashboard ready against {config.api.base_url} (session present: {credentials.present})")

    if check_health:
        store.app.api_reachable.value = await api.health()
        if not store.app.api_reachable.value:
            logger.warning(f"Needle API at {config.api.base_url} is not healthy")
            await store.app.push_status("API unreachable")
        else:
            await store.app.push_status("Connected")

    router.navigate("dashboard")
    return store


async def shutdown() -> None:
    """Close the HTTP client and forget the Store."""
    client = get_api_client()
    if client is not None and not client.closed:
        await client.aclose()
    set_api_client(None)
    Store.reset()
    logger.info("Dashboard shut down")
