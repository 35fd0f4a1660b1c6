"""Render QR payloads as PNG images.

Symbols use forced version 22, so every chunk of a card scans at the same
size. Error correction is configurable and defaults to medium. Multi-chunk cards are packaged as a ZIP archive
of ``1.png`` .. ``n.png``.
"""

import io
import logging
import zipfile
from collections.abc import Sequence

import qrcode
from qrcode.exceptions import DataOverflowError

from shc_issuer.models.card import QRChunk
from shc_issuer.qr.chunker import MAX_SINGLE_CHUNK_SIZE, QR_VERSION
from shc_issuer.utils.exceptions import QRCodeError

logger = logging.getLogger(__name__)

DEFAULT_BOX_SIZE = 4
DEFAULT_BORDER = 4
DEFAULT_ERROR_CORRECTION = "M"
# Lowest level whose version 22 symbol holds a full single-chunk card
FULL_CHUNK_ERROR_CORRECTION = "L"

# A version 22 symbol holds a full 1195-character chunk only at level L;
# at M it holds roughly 970 characters.
ERROR_CORRECTION_LEVELS = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}


def render_png(
    payload: str,
    box_size: int = DEFAULT_BOX_SIZE,
    border: int = DEFAULT_BORDER,
    error_correction: str = DEFAULT_ERROR_CORRECTION,
) -> bytes:
    """Render one QR payload as a PNG image.
    
    Args:
        payload: ``shc:/`` numeric payload
        box_size: Pixels per QR module
        border: Quiet zone width in modules
        error_correction: Error correction level, one of L, M, Q, H
        
    Returns:
        PNG image bytes
        
    Raises:
        QRCodeError: If the payload does not fit a version 22 symbol or
                     rendering fails
    """
    if error_correction not in ERROR_CORRECTION_LEVELS:
        raise QRCodeError(
            f"Unknown error correction level {error_correction!r}. "
            f"Use one of: {', '.join(ERROR_CORRECTION_LEVELS)}"
        )
    qr = qrcode.QRCode(
        version=QR_VERSION,
        error_correction=ERROR_CORRECTION_LEVELS[error_correction],
        box_size=box_size,
        border=border,
    )
    try:
        qr.add_data(payload)
        qr.make(fit=False)
        img = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
    except DataOverflowError as e:
        raise QRCodeError(
            f"QR payload of {len(payload)} characters exceeds version {QR_VERSION} capacity "
            f"at error correction {error_correction}; error correction "
            f"{FULL_CHUNK_ERROR_CORRECTION} (SHC_QR_ERROR_CORRECTION={FULL_CHUNK_ERROR_CORRECTION}) "
            f"fits the full {MAX_SINGLE_CHUNK_SIZE}-character chunk"
        ) from e
    except (ValueError, OSError) as e:
        raise QRCodeError(f"Failed to render QR code: {e}") from e

    return buffer.getvalue()


def render_chunks(
    chunks: Sequence[QRChunk],
    box_size: int = DEFAULT_BOX_SIZE,
    border: int = DEFAULT_BORDER,
    error_correction: str = DEFAULT_ERROR_CORRECTION,
) -> list[bytes]:
    """Render every chunk of a card, in index order."""
    images = [
        render_png(
            chunk.payload,
            box_size=box_size,
            border=border,
            error_correction=error_correction,
        )
        for chunk in chunks
    ]
    logger.debug(f"Rendered {len(images)} QR image(s)")
    return images


def package_zip(images: Sequence[bytes]) -> bytes:
    """Package PNG images as a ZIP archive named ``1.png`` .. ``n.png``."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for index, image in enumerate(images, start=1):
            archive.writestr(f"{index}.png", image)
    return buffer.getvalue()
