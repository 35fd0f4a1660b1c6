"""Loading and generation of P-256 signing keys.

Keys are supplied either as three decimal integers (d, x, y), as produced by
``shc-issuer keys generate`` and stored in SHC_KEY_D / SHC_KEY_X / SHC_KEY_Y,
or as a PEM-encoded private key file.
"""

import logging
from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from shc_issuer.signing.keys import ECSigningKey
from shc_issuer.utils.exceptions import KeyLoadError

logger = logging.getLogger(__name__)


def _parse_int(name: str, text: Optional[str]) -> int:
    """Parse big-integer text; decimal, or 0x/0o/0b prefixed."""
    if text is None or not text.strip():
        raise KeyLoadError(
            f"Key parameter '{name}' is empty. "
            f"Fix: set SHC_KEY_{name.upper()} or key.{name} in the configuration."
        )
    value = text.strip()
    try:
        if value.lower().startswith(("0x", "0o", "0b", "-0x", "-0o", "-0b", "+0x", "+0o", "+0b")):
            return int(value, 0)
        return int(value, 10)
    except ValueError as e:
        raise KeyLoadError(
            f"Key parameter '{name}' is not an integer: {e}"
        ) from e


def load_key(d: Optional[str], x: Optional[str], y: Optional[str]) -> ECSigningKey:
    """Load a P-256 private key from text representations of d, x and y.
    
    Args:
        d: Private scalar
        x: Public point x-coordinate
        y: Public point y-coordinate
        
    Returns:
        ECSigningKey wrapping the loaded key
        
    Raises:
        KeyLoadError: If a parameter is missing or not an integer, or the
                      point is not the public key for ``d``
                      
    Example:
        >>> key = load_key(os.environ["SHC_KEY_D"], os.environ["SHC_KEY_X"], os.environ["SHC_KEY_Y"])
    """
    d_int = _parse_int("d", d)
    x_int = _parse_int("x", x)
    y_int = _parse_int("y", y)

    try:
        public_numbers = ec.EllipticCurvePublicNumbers(x_int, y_int, ec.SECP256R1())
        private_key = ec.EllipticCurvePrivateNumbers(d_int, public_numbers).private_key()
    except ValueError as e:
        raise KeyLoadError(
            f"Invalid P-256 key parameters: {e}. "
            f"Ensure d, x and y come from the same generated key."
        ) from e

    key = ECSigningKey(private_key)
    logger.info(f"Loaded signing key from parameters: kid={key.kid}")
    return key


def load_pem_key(path: Path, password: Optional[bytes] = None) -> ECSigningKey:
    """Load a P-256 private key from a PEM file.
    
    Args:
        path: Path to PEM private key (PKCS#8 or SEC1)
        password: Password for encrypted keys
        
    Returns:
        ECSigningKey wrapping the loaded key
        
    Raises:
        KeyLoadError: If the file cannot be read or is not a P-256 private key
    """
    if not path.exists():
        raise KeyLoadError(
            f"Key file not found: {path}. "
            f"Generate one with 'shc-issuer keys generate --pem {path}'."
        )

    try:
        pem_data = path.read_bytes()
        private_key = serialization.load_pem_private_key(pem_data, password=password)
    except (OSError, ValueError, TypeError) as e:
        raise KeyLoadError(f"Failed to load PEM private key from {path}: {e}") from e

    key = ECSigningKey(private_key)
    logger.info(f"Loaded signing key from {path.name}: kid={key.kid}")
    return key


def generate_key() -> ECSigningKey:
    """Generate a fresh P-256 signing key."""
    key = ECSigningKey(ec.generate_private_key(ec.SECP256R1()))
    logger.info(f"Generated new signing key: kid={key.kid}")
    return key


def export_key_params(key: ECSigningKey) -> dict[str, str]:
    """Export the key's d, x and y as decimal strings.
    
    Args:
        key: Signing key to export
        
    Returns:
        Dictionary with keys ``d``, ``x`` and ``y``
    """
    private_numbers = key.private_key.private_numbers()
    public_numbers = private_numbers.public_numbers
    return {
        "d": str(private_numbers.private_value),
        "x": str(public_numbers.x),
        "y": str(public_numbers.y),
    }


def export_pem(key: ECSigningKey) -> bytes:
    """Serialize the private key as unencrypted PKCS#8 PEM."""
    return key.private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
