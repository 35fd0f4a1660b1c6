"""Signing module.

This module provides P-256 key material, compact JWS signing and verification,
and the JWK Set published to verifiers.
"""

from shc_issuer.signing.jwks import JWKSPublisher
from shc_issuer.signing.jws import (
    DecodedJWS,
    decode_compact_jws,
    sign_and_serialize,
    verify_compact_jws,
)
from shc_issuer.signing.key_loader import (
    export_key_params,
    export_pem,
    generate_key,
    load_key,
    load_pem_key,
)
from shc_issuer.signing.keys import ECSigningKey, PublicKeyIdentity, Signer

__all__ = [
    # Key material
    "ECSigningKey",
    "PublicKeyIdentity",
    "Signer",
    # Key loading
    "export_key_params",
    "export_pem",
    "generate_key",
    "load_key",
    "load_pem_key",
    # JWS
    "DecodedJWS",
    "decode_compact_jws",
    "sign_and_serialize",
    "verify_compact_jws",
    # Discovery
    "JWKSPublisher",
]
