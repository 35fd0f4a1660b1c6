"""Config module.

This module provides configuration management functionality.
"""

from shc_issuer.config.manager import load_config, load_signing_key
from shc_issuer.config.schema import (
    ChunkingPolicy,
    Config,
    IssuerConfig,
    KeyConfig,
    LoggingConfig,
    QRConfig,
    ServerConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    "load_signing_key",
    # Configuration models
    "ChunkingPolicy",
    "Config",
    "IssuerConfig",
    "KeyConfig",
    "LoggingConfig",
    "QRConfig",
    "ServerConfig",
]
