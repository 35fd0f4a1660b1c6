"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from shc_issuer.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from shc_issuer.config.schema import Config
from shc_issuer.signing.key_loader import load_key, load_pem_key
from shc_issuer.signing.keys import ECSigningKey
from shc_issuer.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "SHC_"

# (environment suffix, section, field, converter)
_ENV_OVERRIDES: list[tuple[str, str, str, Any]] = [
    ("ISSUER_URL", "issuer", "issuer_url", str),
    ("KEY_D", "key", "d", str),
    ("KEY_X", "key", "x", str),
    ("KEY_Y", "key", "y", str),
    ("KEY_PEM_PATH", "key", "pem_path", str),
    ("QR_CHUNKING", "qr", "chunking", str),
    ("QR_BOX_SIZE", "qr", "box_size", int),
    ("QR_BORDER", "qr", "border", int),
    ("QR_ERROR_CORRECTION", "qr", "error_correction", str),
    ("SERVER_HOST", "server", "host", str),
    ("SERVER_PORT", "server", "port", int),
    ("LOG_LEVEL", "logging", "level", str),
    ("LOG_FILE", "logging", "log_file", str),
    ("REDACT_PII", "logging", "redact_pii", "bool"),
]


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.
    
    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (SHC_* prefix)
    3. Configuration file (JSON)
    4. Default values
    
    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json
        
    Returns:
        Validated Config instance
        
    Raises:
        ConfigurationError: If configuration is invalid or malformed
        
    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> config.issuer.issuer_url
        'https://example.com'
    """
    # Load .env file if present in project root
    load_dotenv()
    
    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)
    
    config_dict = _load_config_file(config_path)
    
    # Check for secrets before environment values are merged in
    _check_sensitive_values(config_dict)
    
    config_dict = _apply_env_overrides(config_dict)
    
    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and SHC_* "
            f"environment variables."
        )


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file merged over defaults.
    
    Args:
        config_path: Path to configuration file
        
    Returns:
        Configuration dictionary
        
    Raises:
        ConfigurationError: If JSON is malformed or unreadable
    """
    # Deep copy of defaults to avoid mutation
    config_dict: dict[str, Any] = json.loads(json.dumps(DEFAULT_CONFIG))
    
    if not config_path.exists():
        logger.info(
            f"Config file not found: {config_path}. Using default configuration."
        )
        return config_dict
    
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            file_dict = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in config file: {config_path}\n"
            f"Error: {e}\n"
            f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
        )
    except (OSError, IOError) as e:
        raise ConfigurationError(
            f"Failed to read config file: {config_path}\n"
            f"Error: {e}\n"
            f"Fix: Check file permissions and path"
        )
    
    if not isinstance(file_dict, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a JSON object at the top level"
        )
    
    for section, values in file_dict.items():
        if isinstance(values, dict) and isinstance(config_dict.get(section), dict):
            config_dict[section].update(values)
        else:
            config_dict[section] = values
    
    logger.info(f"Loaded configuration from {config_path}")
    return config_dict


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with SHC_ prefix.
    
    Environment variables follow the pattern: SHC_<SECTION>_<FIELD>
    For example: SHC_ISSUER_URL, SHC_KEY_D, SHC_QR_CHUNKING, SHC_LOG_LEVEL
    
    Args:
        config_dict: Configuration dictionary to update
        
    Returns:
        Updated configuration dictionary with environment overrides applied
        
    Raises:
        ConfigurationError: If a numeric override is not a number
    """
    for suffix, section, field, converter in _ENV_OVERRIDES:
        env_key = f"{ENV_PREFIX}{suffix}"
        raw = os.getenv(env_key)
        if not raw:
            continue
        
        if converter == "bool":
            value: Any = _parse_bool(raw)
        else:
            try:
                value = converter(raw)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid value for {env_key}: '{raw}'. Must be an integer."
                )
        
        config_dict.setdefault(section, {})[field] = value
        logger.debug(f"Override: {section}.{field} from environment")
    
    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string (case-insensitive)."""
    return value.lower() in ("true", "1", "yes", "on")


def _check_sensitive_values(config_dict: dict[str, Any]) -> None:
    """Warn when the private key scalar is stored in the configuration file.
    
    Args:
        config_dict: Configuration dictionary to check
    """
    key_section = config_dict.get("key") or {}
    if key_section.get("d"):
        logger.warning(
            "WARNING: Private key parameter 'd' found in configuration file! "
            "Secrets should be stored in environment variables, not config files. "
            f"Use the {ENV_PREFIX}KEY_D environment variable instead."
        )


def load_signing_key(config: Config) -> ECSigningKey:
    """Load the signing key described by the configuration.
    
    Decimal parameters take precedence over a PEM file when both are set.
    
    Args:
        config: Configuration instance
        
    Returns:
        Loaded ECSigningKey
        
    Raises:
        ConfigurationError: If no key source is configured
        KeyLoadError: If the configured key cannot be loaded
    """
    key_config = config.key
    if key_config.has_params:
        return load_key(key_config.d, key_config.x, key_config.y)
    if key_config.pem_path is not None:
        return load_pem_key(key_config.pem_path)
    
    raise ConfigurationError(
        "No signing key configured. "
        f"Fix: export {ENV_PREFIX}KEY_D, {ENV_PREFIX}KEY_X and {ENV_PREFIX}KEY_Y "
        f"(see 'shc-issuer keys generate') or set {ENV_PREFIX}KEY_PEM_PATH."
    )
