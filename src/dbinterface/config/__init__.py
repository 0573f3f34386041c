"""DBInterface configuration management.

This package provides type-safe configuration models with validation and
environment variable support.

Classes:
    BaseConfig: Base configuration class
    ServerConfig: Server connection and introspection flags
    SystemConfig: Top-level configuration
    DebugConfig: Debug switches
    LoggingConfig: Logging configuration

Example:
    >>> from dbinterface.config import SystemConfig
    >>> config = SystemConfig.from_file("dbinterface.yaml")
    >>> server = config.get_server_config("local")
"""

from .models import (
    BaseConfig,
    CredentialConfig,
    DebugConfig,
    LoggingConfig,
    ServerConfig,
    SSLConfig,
    SystemConfig,
)

__all__ = [
    "BaseConfig",
    "CredentialConfig",
    "DebugConfig",
    "LoggingConfig",
    "ServerConfig",
    "SSLConfig",
    "SystemConfig",
]
