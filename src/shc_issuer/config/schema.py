"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class IssuerConfig(BaseModel):
    """Configuration for the card issuer identity.
    
    Attributes:
        issuer_url: Issuer URL placed in the ``iss`` claim; the JWKS must be
                    reachable at ``<issuer_url>/.well-known/jwks.json``
    """
    
    issuer_url: str = Field(..., description="Issuer URL (iss claim)")
    
    @field_validator("issuer_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is HTTP/HTTPS without a trailing slash.
        
        Raises:
            ValueError: If URL does not start with http:// or https://
        """
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL: {v}. Must start with http:// or https://"
            )
        return v.rstrip("/")


class KeyConfig(BaseModel):
    """Configuration for the ECDSA P-256 signing key.
    
    Either all of d, x and y (decimal integers) or pem_path must be set
    before a card can be signed.
    
    Attributes:
        d: Private scalar
        x: Public point x-coordinate
        y: Public point y-coordinate
        pem_path: Path to a PEM private key file
    """
    
    d: Optional[str] = Field(default=None, description="Private scalar (decimal)")
    x: Optional[str] = Field(default=None, description="Public x-coordinate (decimal)")
    y: Optional[str] = Field(default=None, description="Public y-coordinate (decimal)")
    pem_path: Optional[Path] = Field(default=None, description="PEM private key path")
    
    @property
    def has_params(self) -> bool:
        return bool(self.d and self.x and self.y)
    
    @property
    def is_configured(self) -> bool:
        return self.has_params or self.pem_path is not None


class ChunkingPolicy(str, Enum):
    """How to handle a card too long for one QR code."""
    
    SPLIT = "split"
    REJECT = "reject"


class QRConfig(BaseModel):
    """Configuration for QR code output.
    
    Attributes:
        chunking: ``split`` across multiple QR codes or ``reject`` oversized cards
        box_size: Pixels per QR module
        border: Quiet zone width in modules
        error_correction: QR error correction level (L, M, Q or H)
    """
    
    chunking: ChunkingPolicy = Field(
        default=ChunkingPolicy.SPLIT,
        description="Chunking policy: split or reject",
    )
    box_size: int = Field(default=4, ge=1, le=40, description="Pixels per QR module")
    border: int = Field(default=4, ge=0, le=20, description="Quiet zone in modules")
    error_correction: str = Field(
        default="M",
        description="QR error correction level: L, M, Q or H",
    )
    
    @field_validator("error_correction")
    @classmethod
    def validate_error_correction(cls, v: str) -> str:
        """Validate error correction level and normalize to uppercase.
        
        Raises:
            ValueError: If level is not one of L, M, Q, H
        """
        v_upper = v.upper()
        if v_upper not in ("L", "M", "Q", "H"):
            raise ValueError(
                f"Invalid error correction level: {v}. Must be one of: L, M, Q, H"
            )
        return v_upper


class ServerConfig(BaseModel):
    """Configuration for the issuing web server.
    
    Attributes:
        host: Bind address
        port: Bind port
    """
    
    host: str = Field(default="0.0.0.0", description="Server host address")
    port: int = Field(default=8080, description="Server port")
    
    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"Invalid port {v}. Must be between 1 and 65535.")
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging.
    
    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """
    
    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/shc-issuer.log"),
        description="Log file path"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact PII from logs"
    )
    
    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level and normalize to uppercase.
        
        Raises:
            ValueError: If log level is not valid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper


class Config(BaseModel):
    """Root configuration model.
    
    Attributes:
        issuer: Issuer identity
        key: Signing key source
        qr: QR output settings
        server: Web server settings
        logging: Logging settings
    """
    
    issuer: IssuerConfig
    key: KeyConfig = Field(default_factory=KeyConfig)
    qr: QRConfig = Field(default_factory=QRConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
