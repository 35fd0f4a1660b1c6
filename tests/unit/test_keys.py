"""Unit tests for P-256 key material and key loading."""

import base64
import hashlib
import json

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jwcrypto import jwk

from shc_issuer.signing import (
    ECSigningKey,
    JWKSPublisher,
    PublicKeyIdentity,
    Signer,
    export_key_params,
    export_pem,
    generate_key,
    load_key,
    load_pem_key,
)
from shc_issuer.utils.exceptions import KeyLoadError, SigningError


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


class TestECSigningKey:
    """Tests for ECSigningKey."""

    def test_implements_both_protocols(self, signing_key):
        """Test the key is both a Signer and a PublicKeyIdentity."""
        assert isinstance(signing_key, Signer)
        assert isinstance(signing_key, PublicKeyIdentity)

    def test_coordinates_are_32_byte_big_endian(self, signing_key):
        """Test x and y are fixed-width, unpadded Base64URL."""
        # Arrange
        numbers = signing_key.public_key.public_numbers()

        # Assert
        assert len(signing_key.x_b64) == 43
        assert "=" not in signing_key.x_b64
        assert signing_key.x_b64 == _b64url(numbers.x.to_bytes(32, "big"))
        assert signing_key.y_b64 == _b64url(numbers.y.to_bytes(32, "big"))

    def test_kid_is_thumbprint_of_canonical_jwk(self, signing_key):
        """Test kid hashes crv, kty, x, y in lexicographic order without whitespace."""
        # Arrange
        canonical = (
            '{"crv":"P-256","kty":"EC","x":"%s","y":"%s"}'
            % (signing_key.x_b64, signing_key.y_b64)
        )

        # Act
        expected = _b64url(hashlib.sha256(canonical.encode("utf-8")).digest())

        # Assert
        assert signing_key.kid == expected
        assert len(signing_key.kid) == 43

    def test_kid_matches_jwcrypto_thumbprint(self, signing_key):
        """Test kid equals the thumbprint of the JWK rebuilt from x and y."""
        # Arrange
        public = jwk.JWK(kty="EC", crv="P-256", x=signing_key.x_b64, y=signing_key.y_b64)

        # Act & Assert
        assert signing_key.kid == public.thumbprint()

    def test_kid_is_stable(self, signing_key):
        """Test kid does not change between reads or for a reloaded key."""
        # Arrange
        params = export_key_params(signing_key)

        # Act
        reloaded = load_key(params["d"], params["x"], params["y"])

        # Assert
        assert signing_key.kid == signing_key.kid
        assert reloaded.kid == signing_key.kid

    def test_different_keys_have_different_kids(self, signing_key):
        """Test two generated keys do not share a kid."""
        assert generate_key().kid != signing_key.kid

    def test_public_jwk(self, signing_key):
        """Test public JWK contents."""
        assert signing_key.public_jwk() == {
            "kty": "EC",
            "kid": signing_key.kid,
            "use": "sig",
            "alg": "ES256",
            "crv": "P-256",
            "x": signing_key.x_b64,
            "y": signing_key.y_b64,
        }

    def test_jwks_json_is_compact(self, signing_key):
        """Test the JWKS document is compact JSON with one key."""
        # Act
        data = signing_key.jwks_json()

        # Assert
        assert b" " not in data
        assert json.loads(data) == {"keys": [signing_key.public_jwk()]}

    def test_sign_digest_returns_components(self, signing_key):
        """Test sign_digest returns (r, s) within the curve order."""
        # Act
        r, s = signing_key.sign_digest(hashlib.sha256(b"data").digest())

        # Assert
        assert 0 < r < 2 ** 256
        assert 0 < s < 2 ** 256

    def test_sign_digest_rejects_wrong_size(self, signing_key):
        """Test a digest that is not 32 bytes raises SigningError."""
        with pytest.raises(SigningError, match="32-byte"):
            signing_key.sign_digest(b"short")

    def test_wrong_curve_rejected(self):
        """Test a non-P-256 EC key raises KeyLoadError."""
        with pytest.raises(KeyLoadError, match="P-256"):
            ECSigningKey(ec.generate_private_key(ec.SECP384R1()))

    def test_non_ec_key_rejected(self):
        """Test an RSA key raises KeyLoadError."""
        with pytest.raises(KeyLoadError, match="EC private key"):
            ECSigningKey(rsa.generate_private_key(public_exponent=65537, key_size=2048))

    def test_repr_hides_private_key(self, signing_key):
        """Test repr shows only the kid."""
        assert repr(signing_key) == f"ECSigningKey(kid={signing_key.kid!r})"


class TestKeyLoader:
    """Tests for loading keys from parameters and PEM files."""

    def test_export_params_are_decimal(self, signing_key):
        """Test exported parameters are decimal integer text."""
        # Act
        params = export_key_params(signing_key)

        # Assert
        assert set(params) == {"d", "x", "y"}
        assert all(value.isdigit() for value in params.values())
        assert int(params["x"]) == signing_key.public_key.public_numbers().x

    def test_load_key_accepts_hex_prefix(self, signing_key):
        """Test 0x-prefixed parameters are accepted."""
        # Arrange
        params = {name: hex(int(value)) for name, value in export_key_params(signing_key).items()}

        # Act
        key = load_key(params["d"], params["x"], params["y"])

        # Assert
        assert key.kid == signing_key.kid

    def test_load_key_missing_parameter(self, signing_key):
        """Test an empty parameter raises KeyLoadError naming it."""
        # Arrange
        params = export_key_params(signing_key)

        # Act & Assert
        with pytest.raises(KeyLoadError, match="'y' is empty"):
            load_key(params["d"], params["x"], "")

    def test_load_key_non_integer(self):
        """Test non-numeric text raises KeyLoadError."""
        with pytest.raises(KeyLoadError, match="not an integer"):
            load_key("abc", "1", "2")

    def test_load_key_mismatched_point(self, signing_key):
        """Test a public point from another key raises KeyLoadError."""
        # Arrange
        params = export_key_params(signing_key)
        other = export_key_params(generate_key())

        # Act & Assert
        with pytest.raises(KeyLoadError):
            load_key(params["d"], other["x"], other["y"])

    def test_pem_round_trip(self, signing_key, tmp_path):
        """Test a key written as PEM loads back with the same kid."""
        # Arrange
        pem_path = tmp_path / "issuer.pem"
        pem_path.write_bytes(export_pem(signing_key))

        # Act
        key = load_pem_key(pem_path)

        # Assert
        assert key.kid == signing_key.kid

    def test_pem_missing_file(self, tmp_path):
        """Test a missing PEM file raises KeyLoadError with a fix."""
        with pytest.raises(KeyLoadError, match="keys generate --pem"):
            load_pem_key(tmp_path / "missing.pem")

    def test_pem_garbage(self, tmp_path):
        """Test an invalid PEM file raises KeyLoadError."""
        # Arrange
        pem_path = tmp_path / "bad.pem"
        pem_path.write_text("not a key")

        # Act & Assert
        with pytest.raises(KeyLoadError, match="Failed to load PEM"):
            load_pem_key(pem_path)


class TestJWKSPublisher:
    """Tests for JWKSPublisher."""

    def test_returns_key_document_verbatim(self, signing_key):
        """Test the publisher returns the key's JWKS bytes unchanged."""
        # Arrange
        publisher = JWKSPublisher(signing_key)

        # Act & Assert
        assert publisher.jwks_json() == signing_key.jwks_json()
        assert json.loads(publisher.jwks_json())["keys"][0]["kid"] == signing_key.kid
