"""Unit tests for QR image rendering and ZIP packaging."""

import io
import zipfile
from unittest.mock import patch

import pytest
from PIL import Image

from shc_issuer.models import QRChunk
from shc_issuer.qr import encode, package_zip, render_chunks, render_png
from shc_issuer.utils.exceptions import QRCodeError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# Version 22 symbols are 105 modules wide
VERSION_22_MODULES = 105


class TestRenderPng:
    """Tests for render_png."""

    def test_renders_png(self):
        """Test a short payload renders to PNG bytes."""
        # Act
        image = render_png("shc:/" + "56" * 100)

        # Assert
        assert image.startswith(PNG_SIGNATURE)

    def test_forced_version_22(self):
        """Test even a tiny payload uses a full version 22 symbol."""
        # Act
        image = render_png("shc:/5676", box_size=1, border=0)

        # Assert
        with Image.open(io.BytesIO(image)) as img:
            assert img.size == (VERSION_22_MODULES, VERSION_22_MODULES)

    def test_box_size_and_border(self):
        """Test image size follows box size and border."""
        # Act
        image = render_png("shc:/5676", box_size=2, border=4)

        # Assert
        with Image.open(io.BytesIO(image)) as img:
            assert img.size == ((VERSION_22_MODULES + 8) * 2,) * 2

    def test_full_single_chunk_fits_at_level_l(self):
        """Test the largest single-chunk payload fits version 22 at level L."""
        # Arrange
        chunk = encode("A" * 1195)[0]

        # Act & Assert
        assert render_png(chunk.payload, error_correction="L").startswith(PNG_SIGNATURE)

    def test_level_m_capacity(self):
        """Test level M fits a 900-character chunk but not a 1195-character one."""
        # Arrange
        fits = encode("A" * 900)[0]
        too_long = encode("A" * 1195)[0]

        # Act & Assert
        assert render_png(fits.payload, error_correction="M").startswith(PNG_SIGNATURE)
        with pytest.raises(QRCodeError, match="error correction M") as exc_info:
            render_png(too_long.payload, error_correction="M")
        assert "SHC_QR_ERROR_CORRECTION=L" in str(exc_info.value)

    def test_unknown_error_correction(self):
        """Test an unknown level raises QRCodeError."""
        with pytest.raises(QRCodeError, match="Unknown error correction"):
            render_png("shc:/5676", error_correction="X")

    def test_overflow_raises(self):
        """Test a payload beyond version 22 capacity raises QRCodeError."""
        with pytest.raises(QRCodeError, match="exceeds version 22"):
            render_png("shc:/" + "56" * 3000)

    def test_library_failure_wrapped(self):
        """Test errors from the image backend raise QRCodeError."""
        # Arrange
        with patch("shc_issuer.qr.renderer.qrcode.QRCode.make_image", side_effect=OSError("disk")):
            # Act & Assert
            with pytest.raises(QRCodeError, match="Failed to render"):
                render_png("shc:/5676")


class TestRenderChunks:
    """Tests for render_chunks."""

    def test_one_image_per_chunk(self):
        """Test every chunk is rendered in order."""
        # Arrange
        chunks = [
            QRChunk(1, 2, "ab", "shc:/1/2/5253"),
            QRChunk(2, 2, "cd", "shc:/2/2/5455"),
        ]

        # Act
        images = render_chunks(chunks)

        # Assert
        assert len(images) == 2
        assert all(image.startswith(PNG_SIGNATURE) for image in images)


class TestPackageZip:
    """Tests for package_zip."""

    def test_entries_named_by_index(self):
        """Test archive entries are 1.png .. n.png with the given bytes."""
        # Arrange
        images = [b"first", b"second", b"third"]

        # Act
        archive_bytes = package_zip(images)

        # Assert
        with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
            assert archive.namelist() == ["1.png", "2.png", "3.png"]
            assert archive.read("2.png") == b"second"
