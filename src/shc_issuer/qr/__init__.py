"""QR module.

This module splits signed cards into numeric ``shc:/`` payloads and renders
them as QR code images.
"""

from shc_issuer.qr.chunker import (
    MAX_MULTI_CHUNK_SIZE,
    MAX_SINGLE_CHUNK_SIZE,
    chunk_count,
    decode,
    encode,
    numeric_encode,
    split_jws,
)
from shc_issuer.qr.renderer import (
    ERROR_CORRECTION_LEVELS,
    package_zip,
    render_chunks,
    render_png,
)

__all__ = [
    "ERROR_CORRECTION_LEVELS",
    "MAX_MULTI_CHUNK_SIZE",
    "MAX_SINGLE_CHUNK_SIZE",
    "chunk_count",
    "decode",
    "encode",
    "numeric_encode",
    "package_zip",
    "render_chunks",
    "render_png",
    "split_jws",
]
