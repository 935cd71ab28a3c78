"""
Configuration Management System for the Needle dashboard

This module provides a centralized configuration system that supports a 4-tier
precedence hierarchy: environment → project → user → system defaults.
"""

import logging
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, ValidationError
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3000"


class ValidationLevel(Enum):
    """Configuration validation strictness levels"""
    STRICT = "strict"      # Fail fast on validation errors
    LENIENT = "lenient"    # Log warnings, use defaults


class ApiConfig(BaseModel):
    """Remote Needle API Configuration"""
    model_config = ConfigDict(extra='forbid')

    base_url: str = Field(default=DEFAULT_API_URL, description="Base endpoint of the Needle API")
    timeout: float = Field(default=30.0, ge=1.0, le=300.0, description="Request timeout (seconds)")


class StorageConfig(BaseModel):
    """Durable client-side storage"""
    model_config = ConfigDict(extra='forbid')

    data_dir: str = Field(default="data", description="Directory for client state files")
    credential_file: str = Field(default="session.yaml", description="File holding the persisted credential")
    credential_key: str = Field(default="needle_token", description="Storage key of the bearer token")

    @property
    def credential_path(self) -> Path:
        return Path(self.data_dir) / self.credential_file


class LoggingConfig(BaseModel):
    """Logging Configuration"""
    model_config = ConfigDict(extra='forbid')

    level: str = Field(default="INFO", description="Root / file log level")
    console_level: str = Field(default="WARNING", description="Terminal log level")
    log_file: str = Field(default="logs/needle.log", description="Log file, relative to data_dir")
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    backup_count: int = Field(default=5, ge=0, le=50)


class SystemConfig(BaseModel):
    """Complete system configuration"""
    model_config = ConfigDict(extra='forbid')

    api: ApiConfig = Field(default_factory=ApiConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Metadata
    schema_version: int = Field(default=1, description="Configuration schema version")


# Environment variable → (section, key, type)
ENV_OVERRIDES: Dict[str, tuple] = {
    'NEEDLE_API_URL': ('api', 'base_url', str),
    'NEEDLE_API_TIMEOUT': ('api', 'timeout', float),
    'NEEDLE_DATA_DIR': ('storage', 'data_dir', str),
    'LOG_LEVEL': ('logging', 'level', str),
}


class ConfigManager:
    """Centralized configuration manager with 4-tier precedence hierarchy"""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.cwd() / "config"
        self._system_defaults: Optional[Dict[str, Any]] = None
        self._user_config: Optional[Dict[str, Any]] = None
        self._project_config: Optional[Dict[str, Any]] = None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load YAML configuration file"""
        if not file_path.exists():
            return {}

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Failed to load {file_path}: {e}")
            return {}

    def _save_yaml_file(self, file_path: Path, data: Dict[str, Any]) -> bool:
        """Save configuration to YAML file"""
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)
            return True
        except OSError as e:
            logger.error(f"Failed to save {file_path}: {e}")
            return False

    def _load_system_defaults(self) -> Dict[str, Any]:
        if self._system_defaults is None:
            defaults = self._load_yaml_file(self.config_dir / "defaults.yaml")
            try:
                self._system_defaults = SystemConfig(**defaults).model_dump()
            except ValidationError as e:
                logger.warning(f"System defaults validation failed: {e}")
                self._system_defaults = SystemConfig().model_dump()
        return self._system_defaults

    def _load_user_config(self) -> Dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml_file(self.config_dir / "user.yaml")
        return self._user_config

    def _load_project_config(self) -> Dict[str, Any]:
        if self._project_config is None:
            self._project_config = self._load_yaml_file(self.config_dir / "project.yaml")
        return self._project_config

    def _merge_configs(self) -> Dict[str, Any]:
        """Merge configurations with precedence: env → project → user → system"""
        merged: Dict[str, Any] = {}
        self._deep_merge(merged, self._load_system_defaults())
        self._deep_merge(merged, self._load_user_config())
        self._deep_merge(merged, self._load_project_config())
        self._deep_merge(merged, self._get_env_overrides())
        return merged

    def _deep_merge(self, base: Dict[str, Any], updates: Dict[str, Any]) -> None:
        """Deep merge configuration dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            elif isinstance(value, dict):
                base[key] = dict(value)
            else:
                base[key] = value

    def _get_env_overrides(self) -> Dict[str, Any]:
        """Extract configuration overrides from environment variables"""
        overrides: Dict[str, Any] = {}
        for env_key, (section, config_key, kind) in ENV_OVERRIDES.items():
            value = os.getenv(env_key)
            if value is None or value == "":
                continue
            try:
                converted = kind(value)
            except ValueError:
                logger.warning(f"Ignoring {env_key}={value!r}: expected {kind.__name__}")
                continue
            overrides.setdefault(section, {})[config_key] = converted
        return overrides

    def get_config(self, validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
        """Get merged configuration with validation"""
        merged_config = self._merge_configs()

        try:
            return SystemConfig(**merged_config)
        except ValidationError as e:
            if validation_level == ValidationLevel.STRICT:
                raise ValueError(f"Configuration validation failed: {e}")
            logger.warning(f"Configuration validation failed, using defaults: {e}")
            return SystemConfig()

    def save_user_config(self, config_updates: Dict[str, Any]) -> bool:
        """Save user-level configuration updates"""
        user_path = self.config_dir / "user.yaml"
        existing_config = self._load_yaml_file(user_path)
        self._deep_merge(existing_config, config_updates)

        success = self._save_yaml_file(user_path, existing_config)
        if success:
            self._user_config = None
        return success


# Global instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_dir: Optional[Path] = None) -> ConfigManager:
    """Get global configuration manager instance"""
    global _config_manager
    if _config_manager is None or config_dir is not None:
        _config_manager = ConfigManager(config_dir)
    return _config_manager


def get_config(validation_level: ValidationLevel = ValidationLevel.STRICT) -> SystemConfig:
    """Get current system configuration"""
    return get_config_manager().get_config(validation_level)
