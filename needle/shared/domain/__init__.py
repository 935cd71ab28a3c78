"""
Shared Domain Module
====================

Records exchanged with the Needle API and the naming rules they obey.
"""

from .models import (
    AnalyticsSummary,
    ApiKey,
    AuthResponse,
    CreateKeyRequest,
    CreatedApiKey,
    CreateTunnelRequest,
    DailyStats,
    Tunnel,
    TunnelRequest,
    User,
)
from .subdomain import is_valid_custom

__all__ = [
    "AnalyticsSummary",
    "ApiKey",
    "AuthResponse",
    "CreateKeyRequest",
    "CreatedApiKey",
    "CreateTunnelRequest",
    "DailyStats",
    "Tunnel",
    "TunnelRequest",
    "User",
    "is_valid_custom",
]
