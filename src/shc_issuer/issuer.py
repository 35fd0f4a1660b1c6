"""SMART Health Card issuing pipeline.

Ties the stages together: credential bundle to payload, payload to compact
JWS, JWS to ``shc:/`` QR chunks, and chunks to PNG images.
"""

import time
from collections.abc import Mapping
from datetime import datetime
from typing import Optional, Union

from shc_issuer.config.manager import load_signing_key
from shc_issuer.config.schema import ChunkingPolicy, Config
from shc_issuer.fhir.bundle import build_payload
from shc_issuer.forms.validator import parse_form
from shc_issuer.logging_audit import log_audit_event
from shc_issuer.models.card import IssuedCard
from shc_issuer.models.immunization import CredentialBundle
from shc_issuer.qr.chunker import encode
from shc_issuer.qr.renderer import (
    DEFAULT_BORDER,
    DEFAULT_BOX_SIZE,
    DEFAULT_ERROR_CORRECTION,
    render_chunks,
)
from shc_issuer.signing.jwks import JWKSPublisher
from shc_issuer.signing.jws import sign_and_serialize
from shc_issuer.signing.keys import ECSigningKey


class HealthCardIssuer:
    """Issue signed, QR-encoded immunization cards for one issuer and key.
    
    Instances hold no per-card state and can be shared between threads.
    
    Attributes:
        key: Signing key; its ``kid`` is published in the JWKS
        issuer: Issuer URL placed in the ``iss`` claim
        allow_chunking: Split long cards across QR codes instead of rejecting them
        box_size: Pixels per QR module
        border: Quiet zone width in modules
        error_correction: QR error correction level (L, M, Q or H)
        
    Example:
        >>> issuer = HealthCardIssuer(generate_key(), "https://example.com")
        >>> card = issuer.issue(bundle)
        >>> card.chunks[0].payload[:5]
        'shc:/'
    """

    def __init__(
        self,
        key: ECSigningKey,
        issuer: str,
        allow_chunking: bool = True,
        box_size: int = DEFAULT_BOX_SIZE,
        border: int = DEFAULT_BORDER,
        error_correction: str = DEFAULT_ERROR_CORRECTION,
    ) -> None:
        self.key = key
        self.issuer = issuer
        self.allow_chunking = allow_chunking
        self.box_size = box_size
        self.border = border
        self.error_correction = error_correction
        self._publisher = JWKSPublisher(key)

    def sign(
        self,
        bundle: CredentialBundle,
        issued_at: Optional[Union[datetime, int]] = None,
    ) -> str:
        """Build and sign the payload for a bundle, returning the compact JWS."""
        payload = build_payload(bundle, self.issuer, issued_at=issued_at)
        return sign_and_serialize(payload, self.key)

    def issue(
        self,
        bundle: CredentialBundle,
        issued_at: Optional[Union[datetime, int]] = None,
        render: bool = True,
    ) -> IssuedCard:
        """Issue a card for a credential bundle.
        
        Args:
            bundle: Validated patient and immunization record
            issued_at: ``nbf`` time; defaults to now
            render: Render PNG images for each chunk
            
        Returns:
            IssuedCard with the JWS, its QR chunks and (optionally) images
            
        Raises:
            EncodingError: If the payload or QR numeric encoding fails
            SigningError: If the ECDSA signature cannot be produced
            PayloadTooLargeError: If chunking is disabled and the card is too long
            QRCodeError: If a QR image cannot be rendered
        """
        start_time = time.time()
        try:
            jws = self.sign(bundle, issued_at=issued_at)
            chunks = encode(jws, allow_chunking=self.allow_chunking)
            images: tuple[bytes, ...] = ()
            if render:
                images = tuple(
                    render_chunks(
                        chunks,
                        box_size=self.box_size,
                        border=self.border,
                        error_correction=self.error_correction,
                    )
                )
        except Exception as e:
            log_audit_event("CARD_ISSUE_FAILED", {
                "status": "failure",
                "kid": self.key.kid,
                "immunization_count": len(bundle.immunizations),
                "duration": time.time() - start_time,
                "error_type": type(e).__name__,
                "error_message": str(e),
            })
            raise

        card = IssuedCard(jws=jws, chunks=tuple(chunks), images=images)
        log_audit_event("CARD_ISSUED", {
            "status": "success",
            "kid": self.key.kid,
            "immunization_count": len(bundle.immunizations),
            "chunk_count": len(card.chunks),
            "jws_length": len(jws),
            "duration": time.time() - start_time,
        })
        return card

    def issue_from_form(
        self,
        fields: Mapping[str, Optional[str]],
        issued_at: Optional[Union[datetime, int]] = None,
        render: bool = True,
    ) -> IssuedCard:
        """Validate raw form fields and issue a card.
        
        Raises:
            ValidationError: If the form fields are incomplete or invalid
        """
        return self.issue(parse_form(fields), issued_at=issued_at, render=render)

    def jwks_json(self) -> bytes:
        """JWKS document for the issuer's key."""
        return self._publisher.jwks_json()


def create_issuer(config: Config) -> HealthCardIssuer:
    """Build the card issuer described by the configuration.
    
    Args:
        config: Loaded configuration
        
    Returns:
        HealthCardIssuer using the configured key, issuer URL and QR settings
        
    Raises:
        ConfigurationError: If no signing key is configured
        KeyLoadError: If the configured key cannot be loaded
    """
    return HealthCardIssuer(
        key=load_signing_key(config),
        issuer=config.issuer.issuer_url,
        allow_chunking=config.qr.chunking == ChunkingPolicy.SPLIT,
        box_size=config.qr.box_size,
        border=config.qr.border,
        error_correction=config.qr.error_correction,
    )
