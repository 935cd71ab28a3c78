"""Session Credential Holder.

Keeps the one live bearer token for the process and mirrors it to a small
YAML file so the session survives a restart. Expiry is never predicted
here; the request pipeline clears the token when the server answers 401.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIAL_KEY = "needle_token"


class CredentialHolder:
    """Durable, process-wide home of the bearer credential.

    The backing file is a flat mapping; only ``key`` is owned by this
    holder and any other entries in the file are preserved on write.
    """

    def __init__(self, storage_path: Path | str, key: str = DEFAULT_CREDENTIAL_KEY) -> None:
        self.storage_path = Path(storage_path)
        self.key = key
        self._token: Optional[str] = self._read_file().get(key)

    def get(self) -> Optional[str]:
        """Return the current token, or None when signed out."""
        return self._token

    def set(self, token: str) -> None:
        """Replace the current token and persist it."""
        if not token:
            raise ValueError("credential must be a non-empty string")
        self._token = token
        data = self._read_file()
        data[self.key] = token
        self._write_file(data)

    def clear(self) -> None:
        """Forget the token. Safe to call when already signed out."""
        self._token = None
        data = self._read_file()
        if self.key in data:
            del data[self.key]
            self._write_file(data)

    @property
    def present(self) -> bool:
        return self._token is not None

    def _read_file(self) -> Dict[str, Any]:
        if not self.storage_path.exists():
            return {}
        try:
            with open(self.storage_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Unreadable credential store {self.storage_path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed credential store {self.storage_path}")
            return {}
        return data

    def _write_file(self, data: Dict[str, Any]) -> None:
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.storage_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
