"""Issuing and key discovery endpoints."""

import logging
from typing import Optional

from flask import Blueprint, Response, request

from shc_issuer.issuer import HealthCardIssuer
from shc_issuer.qr.renderer import package_zip
from shc_issuer.utils.exceptions import ErrorFault, create_error_info

# Create Blueprints
issue_bp = Blueprint("issue", __name__)
jwks_bp = Blueprint("jwks", __name__)

logger = logging.getLogger("shc_issuer.web.endpoints")

# Store issuer reference
_issuer: Optional[HealthCardIssuer] = None


def _error_response(error: Exception) -> tuple[Response, int]:
    """Map an issuing failure to a plain-text HTTP response.
    
    Client faults echo the validation message; internal faults return an
    empty body and keep the details in the server log.
    
    Args:
        error: Exception raised while issuing
        
    Returns:
        Tuple of (Response object, HTTP status code)
    """
    info = create_error_info(error)
    if info.fault == ErrorFault.INTERNAL:
        logger.error(
            f"Card issuing failed ({info.error_type}): {info.technical_details}. "
            f"Fix: {info.remediation}",
            exc_info=error,
        )
    else:
        logger.warning(f"Card request rejected ({info.http_status}): {info.technical_details}")
    return Response(info.message, mimetype="text/plain; charset=utf-8"), info.http_status


@issue_bp.route("/", methods=["POST"])
def handle_issue() -> tuple[Response, int]:
    """Issue a card from submitted form fields.
    
    Returns:
        A PNG image for a single-chunk card, or a ZIP archive of
        ``1.png`` .. ``n.png`` for a chunked card
    """
    if _issuer is None:
        logger.error("Issue endpoint called before the issuer was initialized")
        return Response("", mimetype="text/plain"), 500

    try:
        card = _issuer.issue_from_form(request.form.to_dict())
    except Exception as e:
        return _error_response(e)

    if card.is_chunked:
        logger.info(f"Issued chunked card with {len(card.chunks)} QR codes")
        return Response(package_zip(card.images), mimetype="application/zip"), 200

    logger.info("Issued single QR code card")
    return Response(card.images[0], mimetype="image/png"), 200


@jwks_bp.route("/.well-known/jwks.json", methods=["GET"])
def handle_jwks() -> tuple[Response, int]:
    """Serve the issuer's JSON Web Key Set.
    
    Verifiers fetch this cross-origin, so any origin is allowed.
    """
    if _issuer is None:
        logger.error("JWKS endpoint called before the issuer was initialized")
        return Response("", mimetype="text/plain"), 500

    response = Response(_issuer.jwks_json(), mimetype="application/json")
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response, 200


def register_endpoints(app, issuer: HealthCardIssuer) -> None:
    """Register issuing and JWKS endpoints with Flask app.
    
    Args:
        app: Flask application instance
        issuer: Card issuer shared by all requests
    """
    global _issuer
    _issuer = issuer

    # Register Blueprints (only if not already registered)
    for blueprint in (issue_bp, jwks_bp):
        if blueprint.name not in app.blueprints:
            app.register_blueprint(blueprint)
            logger.info(f"Registered endpoint blueprint: {blueprint.name}")
        else:
            logger.debug(f"Endpoint blueprint already registered: {blueprint.name}")
