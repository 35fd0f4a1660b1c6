"""Split a signed card into ``shc:/`` numeric QR payloads.

Each character of the compact JWS is written as two decimal digits
(code point minus 45), so the QR symbol can use numeric mode. Cards longer
than a single QR code allows are split into nearly equal chunks tagged with
``<index>/<total>/``. See
https://spec.smarthealth.cards/#every-health-card-can-be-embedded-in-a-qr-code
https://spec.smarthealth.cards/#encoding-chunks-as-qr-codes
"""

import logging
import re
import string
from collections.abc import Iterable

from shc_issuer.models.card import QRChunk
from shc_issuer.utils.exceptions import EncodingError, PayloadTooLargeError

logger = logging.getLogger(__name__)

SHC_PREFIX = "shc:/"
MAX_SINGLE_CHUNK_SIZE = 1195  # https://spec.smarthealth.cards/#chunking
MAX_MULTI_CHUNK_SIZE = 1191
QR_VERSION = 22

NUMERIC_OFFSET = ord("-")
JWS_ALPHABET = frozenset(string.ascii_letters + string.digits + "-_.")

_PAYLOAD_PATTERN = re.compile(r"^shc:/(?:(\d+)/(\d+)/)?(\d*)$")


def chunk_count(length: int) -> int:
    """Number of QR chunks needed for a JWS of ``length`` characters.
    
    Example:
        >>> chunk_count(1195), chunk_count(1196), chunk_count(2383)
        (1, 2, 3)
    """
    if length <= MAX_SINGLE_CHUNK_SIZE:
        return 1
    return -(-length // MAX_MULTI_CHUNK_SIZE)


def split_jws(jws: str, num_chunks: int) -> list[str]:
    """Split ``jws`` into ``num_chunks`` contiguous, nearly equal segments.
    
    Segment boundaries fall at ``i * len(jws) // num_chunks``.
    """
    if num_chunks < 1:
        raise ValueError(f"num_chunks must be at least 1, got {num_chunks}")
    length = len(jws)
    return [
        jws[(i - 1) * length // num_chunks:i * length // num_chunks]
        for i in range(1, num_chunks + 1)
    ]


def numeric_encode(segment: str) -> str:
    """Encode JWS characters as two-digit pairs of (code point - 45).
    
    Raises:
        EncodingError: If a character is outside the Base64URL-plus-dot alphabet
    """
    digits = []
    for position, char in enumerate(segment):
        if char not in JWS_ALPHABET:
            raise EncodingError(
                f"Character {char!r} at position {position} cannot be numerically "
                f"encoded; compact JWS must be Base64URL segments joined by '.'"
            )
        digits.append(f"{ord(char) - NUMERIC_OFFSET:02d}")
    return "".join(digits)


def numeric_decode(digits: str) -> str:
    """Inverse of numeric_encode.
    
    Raises:
        EncodingError: If the digit string has odd length or an out-of-range pair
    """
    if len(digits) % 2:
        raise EncodingError(f"Numeric payload has odd length {len(digits)}")
    chars = []
    for i in range(0, len(digits), 2):
        char = chr(int(digits[i:i + 2]) + NUMERIC_OFFSET)
        if char not in JWS_ALPHABET:
            raise EncodingError(f"Digit pair {digits[i:i + 2]!r} does not map to a JWS character")
        chars.append(char)
    return "".join(chars)


def encode(jws: str, allow_chunking: bool = True) -> list[QRChunk]:
    """Encode a compact JWS into one or more ``shc:/`` QR payloads.
    
    Args:
        jws: Compact JWS string
        allow_chunking: When False, a JWS longer than a single QR code allows
                        is rejected instead of being split
                        
    Returns:
        QR chunks in index order
        
    Raises:
        PayloadTooLargeError: If chunking is disabled and the JWS is too long
        EncodingError: If the JWS contains characters outside its alphabet
        
    Example:
        >>> [chunk.payload[:9] for chunk in encode(short_jws)]
        ['shc:/5676']
    """
    num_chunks = chunk_count(len(jws))
    if num_chunks > 1 and not allow_chunking:
        raise PayloadTooLargeError(
            f"Signed card is {len(jws)} characters; a single QR code holds at most "
            f"{MAX_SINGLE_CHUNK_SIZE}"
        )

    chunks = []
    for index, segment in enumerate(split_jws(jws, num_chunks), start=1):
        prefix = SHC_PREFIX if num_chunks == 1 else f"{SHC_PREFIX}{index}/{num_chunks}/"
        chunks.append(QRChunk(
            index=index,
            total=num_chunks,
            jws_segment=segment,
            payload=prefix + numeric_encode(segment),
        ))

    logger.debug(f"Encoded JWS of {len(jws)} characters into {num_chunks} QR chunk(s)")
    return chunks


def decode(payloads: Iterable[str]) -> str:
    """Reassemble a compact JWS from ``shc:/`` QR payloads.
    
    Chunks may be supplied in any order.
    
    Args:
        payloads: Scanned QR payload strings
        
    Returns:
        The original compact JWS
        
    Raises:
        EncodingError: If a payload is malformed or chunks are missing
    """
    parsed: dict[int, str] = {}
    expected_total = None
    for payload in payloads:
        match = _PAYLOAD_PATTERN.match(payload.strip())
        if match is None:
            raise EncodingError(f"Not a SMART Health Card QR payload: {payload[:20]!r}...")
        index_text, total_text, digits = match.groups()
        index = int(index_text) if index_text else 1
        total = int(total_text) if total_text else 1

        if expected_total is None:
            expected_total = total
        elif total != expected_total:
            raise EncodingError(
                f"Chunk {index} claims {total} total chunks, expected {expected_total}"
            )
        if not 1 <= index <= total:
            raise EncodingError(f"Chunk index {index} out of range 1..{total}")
        if index in parsed:
            raise EncodingError(f"Duplicate chunk index {index}")
        parsed[index] = numeric_decode(digits)

    if expected_total is None:
        raise EncodingError("No QR payloads supplied")
    missing = [i for i in range(1, expected_total + 1) if i not in parsed]
    if missing:
        raise EncodingError(f"Missing chunk(s): {', '.join(str(i) for i in missing)}")

    return "".join(parsed[i] for i in range(1, expected_total + 1))
