"""Custom exception classes for the SMART Health Card issuer.

All exceptions inherit from SHCIssuerError to allow catching all custom exceptions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SHCIssuerError(Exception):
    """Base exception for all SMART Health Card issuer custom exceptions."""

    pass


class ValidationError(SHCIssuerError):
    """Raised when input data validation fails.
    
    Examples:
        - Missing patient or first immunization fields
        - Partially completed second or third immunization
        - Dates not in YYYY-MM-DD format
        - Unsupported vaccine type
    """

    pass


class ConfigurationError(SHCIssuerError):
    """Raised when configuration loading or validation fails.
    
    Examples:
        - Missing required configuration
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


class KeyLoadError(SHCIssuerError):
    """Raised when signing key material cannot be loaded.
    
    Examples:
        - Non-numeric d, x or y parameter
        - Public point does not match private scalar
        - Key is not on curve P-256
        - Unreadable or encrypted PEM file
    """

    pass


class EncodingError(SHCIssuerError):
    """Raised when a credential cannot be serialized or encoded.
    
    Examples:
        - JSON serialization failure
        - DEFLATE stream failure
        - Character outside the Base64URL alphabet in numeric encoding
        - Malformed shc:/ payload on decode
    """

    pass


class JWSFormatError(EncodingError):
    """Raised when a compact JWS string cannot be parsed.
    
    Examples:
        - Wrong number of segments
        - Invalid Base64URL in a segment
        - Header or payload is not JSON
    """

    pass


class SigningError(SHCIssuerError):
    """Raised when ECDSA signing fails.
    
    Examples:
        - Random number generator failure
        - Key unusable for signing
    """

    pass


class QRCodeError(SHCIssuerError):
    """Raised when a QR symbol cannot be constructed from a payload.
    
    Examples:
        - Payload exceeds version 22 capacity
        - Image backend failure
    """

    pass


class PayloadTooLargeError(SHCIssuerError):
    """Raised when the signed card is too long for a single QR code.
    
    Only raised when chunking is disabled by configuration.
    """

    pass


class ErrorFault(Enum):
    """Which side of a request an error is attributed to.
    
    Attributes:
        CLIENT: Bad input; message may be shown to the caller
        TOO_LARGE: Card too large for the configured QR policy
        INTERNAL: Encoding, signing or rendering failure; details stay in logs
    """
    
    CLIENT = "CLIENT"
    TOO_LARGE = "TOO_LARGE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorInfo:
    """Structured error information for reporting an issuing failure.
    
    Attributes:
        fault: Error fault attribution
        error_type: Exception class name (e.g., "ValidationError")
        message: Message safe to show to the caller (empty for internal faults)
        http_status: HTTP status code for the web layer
        remediation: Actionable guidance for resolving the error
        technical_details: Optional technical details for operator logs
        
    Example:
        >>> info = create_error_info(ValidationError("invalid patient birth date"))
        >>> info.http_status
        400
    """
    
    fault: ErrorFault
    error_type: str
    message: str
    http_status: int
    remediation: str
    technical_details: Optional[str] = None


PAYLOAD_TOO_LARGE_GUIDANCE = (
    "Breaking up large input into multiple chunks and generating multiple "
    "QR codes is not supported at this time."
)


def categorize_error(exception: Exception) -> ErrorFault:
    """Attribute an exception to the client or the issuer.
    
    Args:
        exception: The exception to categorize
        
    Returns:
        ErrorFault for the exception
        
    Example:
        >>> categorize_error(ValidationError("invalid first immunization date"))
        ErrorFault.CLIENT
        >>> categorize_error(SigningError("rng failure"))
        ErrorFault.INTERNAL
    """
    if isinstance(exception, ValidationError):
        return ErrorFault.CLIENT
    
    if isinstance(exception, PayloadTooLargeError):
        return ErrorFault.TOO_LARGE
    
    # Everything else, including unexpected exceptions, is an internal fault
    return ErrorFault.INTERNAL


def create_error_info(exception: Exception) -> ErrorInfo:
    """Create structured error information from exception.
    
    Internal faults never carry the exception text in ``message`` so that
    nothing about the signing internals leaks to the caller.
    
    Args:
        exception: Exception that occurred
        
    Returns:
        ErrorInfo with fault attribution, status code and remediation
    """
    fault = categorize_error(exception)
    
    if fault == ErrorFault.CLIENT:
        message = str(exception)
        http_status = 400
    elif fault == ErrorFault.TOO_LARGE:
        message = PAYLOAD_TOO_LARGE_GUIDANCE
        http_status = 413
    else:
        message = ""
        http_status = 500
    
    technical_details = str(exception)
    if exception.__cause__ is not None:
        technical_details += (
            f" (caused by {type(exception.__cause__).__name__}: {exception.__cause__})"
        )
    
    return ErrorInfo(
        fault=fault,
        error_type=type(exception).__name__,
        message=message,
        http_status=http_status,
        remediation=_generate_remediation(exception),
        technical_details=technical_details,
    )


def _generate_remediation(exception: Exception) -> str:
    """Generate actionable remediation message for an error.
    
    Args:
        exception: Exception that occurred
        
    Returns:
        Actionable remediation message
    """
    if isinstance(exception, ValidationError):
        return (
            "Check the patient and immunization fields. Dates must be YYYY-MM-DD and "
            "vaccine types one of: Pfizer, Moderna, JohnsonAndJohnson, AstraZeneca, "
            "Sinopharm, COVAXIN."
        )
    
    if isinstance(exception, PayloadTooLargeError):
        return (
            "Enable chunking (set qr.chunking to 'split' or SHC_QR_CHUNKING=split) "
            "or reduce the number of immunizations on the card."
        )
    
    if isinstance(exception, KeyLoadError):
        return (
            "Signing key could not be loaded. Regenerate with 'shc-issuer keys generate' "
            "and export SHC_KEY_D, SHC_KEY_X and SHC_KEY_Y."
        )
    
    if isinstance(exception, ConfigurationError):
        return (
            "Configuration error. Check config/config.json and SHC_* environment "
            "variables for missing or invalid values."
        )
    
    if isinstance(exception, QRCodeError):
        return (
            "QR symbol could not be built. If the payload exceeds version 22 capacity, "
            "lower the error correction level (qr.error_correction 'L' or "
            "SHC_QR_ERROR_CORRECTION=L). Otherwise check logs for the QR library error."
        )
    
    # Generic remediation
    return "Review the log file for the full traceback of the failure."
