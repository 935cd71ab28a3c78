"""
Needle Shared Kernel
====================

Session and transport layer used by the dashboard.

Architecture:
- core: EventBus, configuration, service registry
- infrastructure: Technical adapters (HTTP pipeline, credential storage)
- domain: API records and naming rules
"""

__version__ = "0.1.0"

__all__ = []
