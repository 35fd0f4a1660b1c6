"""Compact JSON Web Signature production for SMART Health Cards.

Produces ``<b64url(header)>.<b64url(deflate(payload))>.<b64url(r||s)>`` with
ES256 signatures and raw DEFLATE payload compression. See
https://spec.smarthealth.cards/#health-cards-are-encoded-as-compact-serialization-json-web-signatures-jws
https://spec.smarthealth.cards/#health-cards-are-small
and RFC 7515 appendix A.3.

The decode and verify helpers implement the verifier side on top of
``jwcrypto`` and are used by the ``card decode`` command and the test suite.
Signing stays on the raw ``Signer`` digest interface so any signer (an HSM,
a test double) can produce the r||s signature.
"""

import hashlib
import json
import logging
import zlib
from dataclasses import dataclass
from typing import Any

from cryptography.hazmat.primitives.asymmetric import ec
from jwcrypto import jwk, jws as jose_jws
from jwcrypto.common import base64url_encode

from shc_issuer.signing.keys import (
    ALGORITHM,
    COORDINATE_SIZE,
    PublicKeyIdentity,
    Signer,
    int_to_fixed_bytes,
)
from shc_issuer.utils.exceptions import EncodingError, JWSFormatError, SigningError

logger = logging.getLogger(__name__)

COMPRESSION_ALGORITHM = "DEF"
# Raw DEFLATE stream: no zlib header or trailer
DEFLATE_WBITS = -15


@dataclass(frozen=True)
class DecodedJWS:
    """Parsed compact JWS.
    
    Attributes:
        header: Protected header
        payload: Decompressed, parsed payload
        signature: Raw r||s signature bytes
    """

    header: dict[str, Any]
    payload: dict[str, Any]
    signature: bytes


def deflate(data: bytes) -> bytes:
    """Compress with raw DEFLATE at maximum compression level.
    
    Raises:
        EncodingError: If the compression stream fails
    """
    try:
        compressor = zlib.compressobj(zlib.Z_BEST_COMPRESSION, zlib.DEFLATED, DEFLATE_WBITS)
        return compressor.compress(data) + compressor.flush()
    except zlib.error as e:
        raise EncodingError(f"DEFLATE compression failed: {e}") from e


def inflate(data: bytes) -> bytes:
    """Decompress a raw DEFLATE stream.
    
    Raises:
        JWSFormatError: If the data is not a valid raw DEFLATE stream
    """
    try:
        return zlib.decompress(data, DEFLATE_WBITS)
    except zlib.error as e:
        raise JWSFormatError(f"Payload is not a valid raw DEFLATE stream: {e}") from e


def _encode_header(kid: str) -> str:
    header = {"alg": ALGORITHM, "zip": COMPRESSION_ALGORITHM, "kid": kid}
    try:
        header_bytes = json.dumps(header, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Failed to serialize JWS header: {e}") from e
    return base64url_encode(header_bytes)


def sign_and_serialize(payload: bytes, key: Signer) -> str:
    """Compress, sign and serialize a payload as a compact JWS.
    
    Args:
        payload: JSON payload bytes (uncompressed)
        key: Signing key; must also provide ``kid`` (PublicKeyIdentity)
        
    Returns:
        Compact JWS string ``header.payload.signature``
        
    Raises:
        EncodingError: If header serialization or compression fails
        SigningError: If the key cannot sign
        
    Example:
        >>> jws = sign_and_serialize(build_payload(bundle, "https://example.com"), key)
        >>> jws.count(".")
        2
    """
    if not isinstance(key, PublicKeyIdentity):
        raise SigningError(
            f"{type(key).__name__} has no public identity (kid); "
            f"use a key implementing PublicKeyIdentity."
        )

    header_b64 = _encode_header(key.kid)
    payload_b64 = base64url_encode(deflate(payload))

    signing_input = f"{header_b64}.{payload_b64}".encode("ascii")
    digest = hashlib.sha256(signing_input).digest()

    r, s = key.sign_digest(digest)
    try:
        signature = int_to_fixed_bytes(r) + int_to_fixed_bytes(s)
    except OverflowError as e:
        raise SigningError(f"Signature component exceeds {COORDINATE_SIZE} bytes: {e}") from e

    jws = f"{header_b64}.{payload_b64}.{base64url_encode(signature)}"
    logger.debug(
        f"Signed JWS: payload={len(payload)} bytes, compressed={len(payload_b64)} chars, "
        f"total={len(jws)} chars, kid={key.kid}"
    )
    return jws


def _decode_json_segment(name: str, data: bytes) -> dict[str, Any]:
    try:
        value = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise JWSFormatError(f"JWS {name} is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise JWSFormatError(f"JWS {name} must be a JSON object")
    return value


def _deserialize(jws: str) -> jose_jws.JWS:
    parts = jws.split(".")
    if len(parts) != 3 or not all(parts):
        raise JWSFormatError(
            f"Compact JWS must have three non-empty segments, got {len(parts)}"
        )
    token = jose_jws.JWS()
    try:
        token.deserialize(jws)
    except jose_jws.InvalidJWSObject as e:
        raise JWSFormatError(
            f"JWS header or segments could not be decoded: {e.__cause__ or e}"
        ) from e
    return token


def decode_compact_jws(jws: str) -> DecodedJWS:
    """Split and decode a compact JWS without verifying it.
    
    Args:
        jws: Compact JWS string
        
    Returns:
        DecodedJWS with header, inflated payload and raw signature
        
    Raises:
        JWSFormatError: If the JWS is malformed
    """
    objects = _deserialize(jws).objects
    header = _decode_json_segment("header", objects["protected"].encode("utf-8"))
    payload_bytes = objects["payload"]
    if header.get("zip") == COMPRESSION_ALGORITHM:
        payload_bytes = inflate(payload_bytes)
    return DecodedJWS(
        header=header,
        payload=_decode_json_segment("payload", payload_bytes),
        signature=objects["signature"],
    )


def verify_compact_jws(jws: str, public_key: ec.EllipticCurvePublicKey) -> bool:
    """Verify the ES256 signature of a compact JWS.
    
    Args:
        jws: Compact JWS string
        public_key: P-256 public key of the issuer
        
    Returns:
        True if the signature is valid, False otherwise
        
    Raises:
        JWSFormatError: If the JWS is malformed
    """
    token = _deserialize(jws)
    try:
        token.verify(jwk.JWK.from_pyca(public_key), alg=ALGORITHM)
    except jose_jws.InvalidJWSSignature as e:
        logger.debug(f"JWS verification failed: {e}")
        return False
    return True
