"""Typed records exchanged with the Needle API.

Server responses may carry more fields than the dashboard uses; those are
ignored rather than rejected.
"""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .subdomain import is_valid_custom


class ApiRecord(BaseModel):
    """Base for every record decoded from a server response."""
    model_config = ConfigDict(extra="ignore")


class User(ApiRecord):
    id: str
    email: str
    username: str
    tier: str
    # The auth endpoints return the user without its creation time
    created_at: Optional[datetime] = None


class AuthResponse(ApiRecord):
    token: str = Field(min_length=1)
    user: User


class Tunnel(ApiRecord):
    id: str
    user_id: str
    subdomain: str
    custom_domain: Optional[str] = None
    target_port: int
    protocol: str
    is_active: bool
    is_persistent: bool
    created_at: datetime
    last_active: datetime
    url: Optional[str] = None


class TunnelRequest(ApiRecord):
    """One proxied HTTP exchange observed by the inspector."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    tunnel_id: str
    method: str
    path: str
    status_code: int
    latency_ms: int
    request_headers: Optional[Dict[str, str]] = None
    response_headers: Optional[Dict[str, str]] = None
    request_size: Optional[int] = None
    response_size: Optional[int] = None
    client_ip: Optional[str] = None
    timestamp: datetime


class DailyStats(ApiRecord):
    date: dt.date
    total_requests: int
    total_bytes_in: int
    total_bytes_out: int
    avg_latency_ms: float
    error_count: int
    unique_ips: int


class AnalyticsSummary(ApiRecord):
    total_tunnels: int
    requests_7d: int
    bytes_7d: int


class ApiKey(ApiRecord):
    """API key metadata; the secret itself is never listed."""
    id: str
    name: str
    prefix: str
    created_at: datetime
    last_used: Optional[datetime] = None


class CreatedApiKey(ApiRecord):
    key: str
    prefix: str
    name: str
    id: str


# --- Request payloads ---


class CreateTunnelRequest(BaseModel):
    """Payload for POST /api/tunnels."""
    model_config = ConfigDict(extra="forbid")

    subdomain: Optional[str] = None
    target_port: int = Field(ge=1, le=65535)
    protocol: Optional[str] = None
    is_persistent: Optional[bool] = None

    @field_validator("subdomain")
    @classmethod
    def _check_subdomain(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_custom(value):
            raise ValueError(f"invalid custom subdomain: {value!r}")
        return value

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class CreateKeyRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=100)
