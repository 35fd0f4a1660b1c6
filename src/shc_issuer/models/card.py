"""Result models for issued SMART Health Cards."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QRChunk:
    """One QR-encodable piece of a signed card.
    
    Attributes:
        index: 1-based chunk index
        total: Total number of chunks for the card
        jws_segment: Slice of the compact JWS carried by this chunk
        payload: Full ``shc:/`` numeric payload to put in the QR symbol
    """

    index: int
    total: int
    jws_segment: str
    payload: str


@dataclass(frozen=True)
class IssuedCard:
    """A signed card with its QR payloads and rendered images.
    
    Attributes:
        jws: Compact JWS string
        chunks: QR chunks in index order
        images: PNG bytes per chunk (empty when rendering was skipped)
    """

    jws: str
    chunks: tuple[QRChunk, ...]
    images: tuple[bytes, ...] = ()

    @property
    def is_chunked(self) -> bool:
        """True when the card spans more than one QR code."""
        return len(self.chunks) > 1
