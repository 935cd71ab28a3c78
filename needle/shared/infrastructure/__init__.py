"""
Shared Infrastructure Module
=============================

Technical adapters for external systems (remote API, durable credential storage).
"""

# Remote API
from needle.shared.infrastructure.api.client import ApiClient, ApiError, ApiResult

# Credential storage
from needle.shared.infrastructure.credentials import CredentialHolder, DEFAULT_CREDENTIAL_KEY

__all__ = [
    # API
    "ApiClient",
    "ApiError",
    "ApiResult",
    # Credentials
    "CredentialHolder",
    "DEFAULT_CREDENTIAL_KEY",
]
