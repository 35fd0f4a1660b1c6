"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "issuer": {
        # Verifiers fetch <issuer_url>/.well-known/jwks.json
        "issuer_url": "https://example.com",
    },
    "key": {
        # No default key - must come from SHC_KEY_D/X/Y or a PEM file
        "d": None,
        "x": None,
        "y": None,
        "pem_path": None,
    },
    "qr": {
        # Split oversized cards across multiple QR codes
        "chunking": "split",
        "box_size": 4,
        "border": 4,
        # Version 22 at level M fits about 970 JWS characters per code; use "L"
        # for the full 1195-character chunk size
        "error_correction": "M",
    },
    "server": {
        "host": "0.0.0.0",
        "port": 8080,
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/shc-issuer.log",
        # Do not redact PII by default (user must opt-in for privacy)
        "redact_pii": False,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
