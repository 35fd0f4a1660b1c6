"""Unit tests for shc:/ QR chunk encoding and decoding."""

import random
import string

import pytest

from shc_issuer.qr import chunk_count, decode, encode, numeric_encode, split_jws
from shc_issuer.qr.chunker import numeric_decode
from shc_issuer.utils.exceptions import EncodingError, PayloadTooLargeError

JWS_CHARS = string.ascii_letters + string.digits + "-_"


def _fake_jws(length: int, seed: int = 7) -> str:
    """Build a JWS-shaped string of exactly ``length`` characters."""
    rng = random.Random(seed)
    chars = [rng.choice(JWS_CHARS) for _ in range(length)]
    chars[length // 3] = "."
    chars[2 * length // 3] = "."
    return "".join(chars)


class TestChunkCount:
    """Tests for chunk_count thresholds."""

    @pytest.mark.parametrize(
        "length,expected",
        [(1, 1), (1195, 1), (1196, 2), (2382, 2), (2383, 3), (3573, 3), (3574, 4)],
    )
    def test_boundaries(self, length, expected):
        """Test single-chunk limit 1195 and multi-chunk limit 1191."""
        assert chunk_count(length) == expected


class TestSplitJws:
    """Tests for split_jws."""

    def test_segments_concatenate_to_input(self):
        """Test segments are contiguous and cover the input."""
        # Arrange
        jws = _fake_jws(2383)

        # Act
        segments = split_jws(jws, 3)

        # Assert
        assert "".join(segments) == jws

    def test_balanced_split(self):
        """Test segment lengths differ by at most one."""
        # Arrange
        jws = _fake_jws(2383)

        # Act
        lengths = [len(segment) for segment in split_jws(jws, 3)]

        # Assert
        assert lengths == [794, 794, 795]
        assert max(lengths) - min(lengths) <= 1

    def test_invalid_chunk_count(self):
        """Test zero chunks raises ValueError."""
        with pytest.raises(ValueError):
            split_jws("abc", 0)


class TestNumericEncode:
    """Tests for numeric encoding of JWS characters."""

    def test_known_mapping(self):
        """Test characters map to two-digit (code point - 45) pairs."""
        # '-' -> 00, '.' -> 01, '0' -> 03, 'A' -> 20, '_' -> 50, 'e' -> 56, 'z' -> 77
        assert numeric_encode("-.0A_ez") == "00010320505677"

    def test_output_is_twice_input_length(self):
        """Test every character yields exactly two digits."""
        # Arrange
        jws = _fake_jws(500)

        # Act
        digits = numeric_encode(jws)

        # Assert
        assert len(digits) == 1000
        assert digits.isdigit()

    def test_rejects_characters_outside_alphabet(self):
        """Test padding and whitespace cannot be encoded."""
        with pytest.raises(EncodingError, match="position 3"):
            numeric_encode("abc=")

    def test_decode_reverses_encode(self):
        """Test numeric_decode is the inverse of numeric_encode."""
        # Arrange
        jws = _fake_jws(300)

        # Act & Assert
        assert numeric_decode(numeric_encode(jws)) == jws

    def test_decode_odd_length(self):
        """Test an odd number of digits raises EncodingError."""
        with pytest.raises(EncodingError, match="odd length"):
            numeric_decode("123")


class TestEncode:
    """Tests for encode."""

    def test_single_chunk_prefix(self):
        """Test a short JWS produces one payload with the bare prefix."""
        # Arrange
        jws = _fake_jws(1195)

        # Act
        chunks = encode(jws)

        # Assert
        assert len(chunks) == 1
        chunk = chunks[0]
        assert (chunk.index, chunk.total) == (1, 1)
        assert chunk.jws_segment == jws
        assert chunk.payload == "shc:/" + numeric_encode(jws)

    def test_multi_chunk_prefixes(self):
        """Test chunked payloads carry index/total after the prefix."""
        # Arrange
        jws = _fake_jws(1196)

        # Act
        chunks = encode(jws)

        # Assert
        assert [chunk.payload[:9] for chunk in chunks] == ["shc:/1/2/", "shc:/2/2/"]
        assert [len(chunk.jws_segment) for chunk in chunks] == [598, 598]
        assert all(chunk.total == 2 for chunk in chunks)

    def test_chunk_segments_fit_multi_chunk_limit(self):
        """Test no chunk segment exceeds 1191 characters."""
        # Arrange
        jws = _fake_jws(5000)

        # Act
        chunks = encode(jws)

        # Assert
        assert len(chunks) == 5
        assert all(len(chunk.jws_segment) <= 1191 for chunk in chunks)

    def test_chunking_disabled_rejects_long_jws(self):
        """Test allow_chunking=False raises PayloadTooLargeError past 1195."""
        with pytest.raises(PayloadTooLargeError):
            encode(_fake_jws(1196), allow_chunking=False)

    def test_chunking_disabled_accepts_short_jws(self):
        """Test allow_chunking=False still encodes a card that fits."""
        assert len(encode(_fake_jws(1195), allow_chunking=False)) == 1


class TestDecode:
    """Tests for decode."""

    @pytest.mark.parametrize("length", [10, 1195, 1196, 2383, 4000])
    def test_reassembles_original(self, length):
        """Test decode(encode(jws)) returns the JWS."""
        # Arrange
        jws = _fake_jws(length)

        # Act & Assert
        assert decode(chunk.payload for chunk in encode(jws)) == jws

    def test_accepts_any_order(self):
        """Test chunks scanned out of order reassemble correctly."""
        # Arrange
        jws = _fake_jws(3000)
        payloads = [chunk.payload for chunk in encode(jws)]

        # Act & Assert
        assert decode(reversed(payloads)) == jws

    def test_missing_chunk(self):
        """Test a missing chunk raises EncodingError."""
        # Arrange
        payloads = [chunk.payload for chunk in encode(_fake_jws(3000))]

        # Act & Assert
        with pytest.raises(EncodingError, match="Missing chunk"):
            decode(payloads[:-1])

    def test_duplicate_chunk(self):
        """Test the same chunk twice raises EncodingError."""
        # Arrange
        payloads = [chunk.payload for chunk in encode(_fake_jws(3000))]

        # Act & Assert
        with pytest.raises(EncodingError, match="Duplicate"):
            decode([payloads[0], payloads[0]])

    def test_mismatched_totals(self):
        """Test chunks from cards of different sizes raise EncodingError."""
        # Arrange
        two = encode(_fake_jws(2000))
        three = encode(_fake_jws(3000))

        # Act & Assert
        with pytest.raises(EncodingError, match="total chunks"):
            decode([two[0].payload, three[1].payload])

    @pytest.mark.parametrize("payload", ["https://example.com", "shc:/12a4", "shc:/3/2/0101"])
    def test_malformed_payload(self, payload):
        """Test non-shc payloads and bad indices raise EncodingError."""
        with pytest.raises(EncodingError):
            decode([payload])

    def test_no_payloads(self):
        """Test an empty input raises EncodingError."""
        with pytest.raises(EncodingError, match="No QR payloads"):
            decode([])
