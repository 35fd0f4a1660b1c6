"""ECDSA P-256 key material for SMART Health Card signing.

This module separates the two capabilities a signing key offers:

- ``Signer``: raw ECDSA signing over a SHA-256 digest, returning (r, s)
- ``PublicKeyIdentity``: the JWK thumbprint ``kid`` and public JWK export

``ECSigningKey`` composes both around a ``cryptography`` private key; the
public JWK and its thumbprint come from ``jwcrypto``. See
https://spec.smarthealth.cards/#generating-and-resolving-cryptographic-keys
"""

import hashlib
import json
import logging
from typing import Any, Protocol, runtime_checkable

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
)
from jwcrypto import jwk

from shc_issuer.utils.exceptions import KeyLoadError, SigningError

logger = logging.getLogger(__name__)

ALGORITHM = "ES256"
CURVE = "P-256"
KEY_TYPE = "EC"
COORDINATE_SIZE = 32  # bytes per P-256 coordinate / signature component


def int_to_fixed_bytes(value: int, size: int = COORDINATE_SIZE) -> bytes:
    """Big-endian encoding of ``value``, left-padded with zeros to ``size`` bytes."""
    return value.to_bytes(size, "big")


@runtime_checkable
class Signer(Protocol):
    """Raw ECDSA signer over a precomputed SHA-256 digest."""

    def sign_digest(self, digest: bytes) -> tuple[int, int]:
        ...


@runtime_checkable
class PublicKeyIdentity(Protocol):
    """Public identity of a signing key, as published to verifiers."""

    @property
    def kid(self) -> str:
        ...

    def public_jwk(self) -> dict[str, str]:
        ...

    def jwks_json(self) -> bytes:
        ...


class ECSigningKey:
    """P-256 private key usable as both Signer and PublicKeyIdentity.
    
    Instances are read-only after construction and may be shared across
    threads; every signature draws a fresh nonce from OpenSSL's CSPRNG.
    
    Attributes:
        private_key: Underlying cryptography EC private key
        public_jose_key: Public key as a jwcrypto JWK, used for the kid and verification
        
    Example:
        >>> key = ECSigningKey(ec.generate_private_key(ec.SECP256R1()))
        >>> len(key.kid)
        43
        >>> r, s = key.sign_digest(hashlib.sha256(b"data").digest())
    """

    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        if not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise KeyLoadError(
                f"Expected an EC private key, got {type(private_key).__name__}. "
                f"SMART Health Cards require an ECDSA P-256 key."
            )
        if not isinstance(private_key.curve, ec.SECP256R1):
            raise KeyLoadError(
                f"Unsupported curve {private_key.curve.name}. "
                f"SMART Health Cards require curve P-256 (secp256r1)."
            )

        self.private_key = private_key
        self.public_jose_key = jwk.JWK.from_pyca(private_key.public_key())
        params = self.public_jose_key.export_public(as_dict=True)
        self._x_b64 = params["x"]
        self._y_b64 = params["y"]
        # RFC 7638 SHA-256 thumbprint over {crv, kty, x, y}
        self._kid = self.public_jose_key.thumbprint()

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self.private_key.public_key()

    @property
    def x_b64(self) -> str:
        return self._x_b64

    @property
    def y_b64(self) -> str:
        return self._y_b64

    @property
    def kid(self) -> str:
        """JWK thumbprint of the public key (RFC 7638)."""
        return self._kid

    def public_jwk(self) -> dict[str, str]:
        """Public JWK with key identifier and usage metadata."""
        return {
            "kty": KEY_TYPE,
            "kid": self.kid,
            "use": "sig",
            "alg": ALGORITHM,
            "crv": CURVE,
            "x": self.x_b64,
            "y": self.y_b64,
        }

    def jwks_json(self) -> bytes:
        """JSON Web Key Set containing only this key, as compact JSON."""
        jwks: dict[str, Any] = {"keys": [self.public_jwk()]}
        return json.dumps(jwks, separators=(",", ":")).encode("utf-8")

    def sign_digest(self, digest: bytes) -> tuple[int, int]:
        """ECDSA-sign a SHA-256 digest.
        
        Args:
            digest: 32-byte SHA-256 digest of the signing input
            
        Returns:
            Signature components (r, s)
            
        Raises:
            SigningError: If the digest has the wrong size or signing fails
        """
        if len(digest) != hashlib.sha256().digest_size:
            raise SigningError(
                f"Expected a 32-byte SHA-256 digest, got {len(digest)} bytes"
            )
        try:
            der_signature = self.private_key.sign(
                digest, ec.ECDSA(Prehashed(hashes.SHA256()))
            )
        except (ValueError, UnsupportedAlgorithm) as e:
            raise SigningError(f"ECDSA signing failed: {e}") from e
        return decode_dss_signature(der_signature)

    def __repr__(self) -> str:
        return f"ECSigningKey(kid={self.kid!r})"
