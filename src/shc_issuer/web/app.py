"""Flask application for the SMART Health Card issuer."""

import logging
import signal
import sys
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, Response, jsonify, request

from shc_issuer import __version__
from shc_issuer.config.manager import load_config
from shc_issuer.config.schema import Config
from shc_issuer.issuer import HealthCardIssuer, create_issuer
from shc_issuer.qr.chunker import MAX_SINGLE_CHUNK_SIZE
from shc_issuer.qr.renderer import FULL_CHUNK_ERROR_CORRECTION

from .endpoints import register_endpoints

# Server state tracking
_server_start_time: Optional[datetime] = None
_request_count: int = 0
_config: Optional[Config] = None
_issuer: Optional[HealthCardIssuer] = None

# Create Flask app
app = Flask(__name__)

logger = logging.getLogger("shc_issuer.web")


@app.before_request
def log_request():
    """Log all incoming requests."""
    global _request_count
    _request_count += 1

    logger.info(
        f"Request #{_request_count}: {request.method} {request.path} "
        f"(Content-Length: {request.content_length or 0})"
    )


@app.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint.
    
    Returns JSON with server status, version, issuer, key id, uptime,
    request count, and timestamp.
    """
    uptime_seconds = 0
    if _server_start_time:
        uptime_seconds = int((datetime.now(timezone.utc) - _server_start_time).total_seconds())

    health_response = {
        "status": "healthy",
        "version": __version__,
        "issuer": _issuer.issuer if _issuer else None,
        "kid": _issuer.key.kid if _issuer else None,
        "endpoints": ["/", "/.well-known/jwks.json", "/health"],
        "uptime_seconds": uptime_seconds,
        "request_count": _request_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return jsonify(health_response), 200


@app.errorhandler(500)
def internal_error(error):
    """Handle 500 Internal Server errors with an empty body."""
    logger.error(f"Unhandled server error: {error}")
    return Response("", mimetype="text/plain"), 500


def setup_graceful_shutdown():
    """Setup graceful shutdown handlers for SIGTERM and SIGINT.
    
    Note: Signal handlers can only be registered in the main thread.
    In test scenarios or when running in background threads, this will
    log a warning but continue gracefully.
    """
    def shutdown_handler(signum, frame):
        logger.info(f"Received shutdown signal ({signum}), shutting down issuer")
        sys.exit(0)

    try:
        signal.signal(signal.SIGTERM, shutdown_handler)
        signal.signal(signal.SIGINT, shutdown_handler)
        logger.info("Graceful shutdown handlers registered successfully")
    except ValueError as e:
        # Signal registration only works in main thread
        logger.warning(
            f"Could not register signal handlers (not in main thread): {e}. "
            f"Graceful shutdown via signals will not be available."
        )


def initialize_app(config: Config, issuer: Optional[HealthCardIssuer] = None) -> Flask:
    """Initialize Flask app with configuration.
    
    Args:
        config: Issuer configuration
        issuer: Pre-built issuer; built from the configuration when omitted
        
    Returns:
        The configured Flask app
    """
    global _config, _issuer, _server_start_time
    _config = config
    _issuer = issuer if issuer is not None else create_issuer(config)
    _server_start_time = datetime.now(timezone.utc)

    register_endpoints(app, _issuer)
    logger.info(f"Issuer application initialized (kid={_issuer.key.kid})")
    return app


def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    config: Optional[Config] = None,
    debug: bool = False,
) -> None:
    """Run the Flask issuing server.
    
    Args:
        host: Host address (default: from configuration)
        port: Port number (default: from configuration)
        config: Issuer configuration (loads from file if not provided)
        debug: Enable debug mode (default: False)
        
    Raises:
        ConfigurationError: If no signing key is configured
    """
    if config is None:
        config = load_config()

    initialize_app(config)
    setup_graceful_shutdown()

    host = host or config.server.host
    port = port or config.server.port

    logger.info(f"Starting SMART Health Card issuer on http://{host}:{port}")
    logger.info(f"JWKS available at: http://{host}:{port}/.well-known/jwks.json")
    if config.qr.error_correction != FULL_CHUNK_ERROR_CORRECTION:
        logger.warning(
            f"QR error correction is {config.qr.error_correction}: cards longer than a "
            f"version 22 symbol holds at this level (under {MAX_SINGLE_CHUNK_SIZE} characters) "
            f"fail with HTTP 500. Set SHC_QR_ERROR_CORRECTION={FULL_CHUNK_ERROR_CORRECTION} "
            f"to fit every chunk."
        )

    app.run(
        host=host,
        port=port,
        debug=debug,
        use_reloader=False  # Disable reloader to avoid duplicate startup
    )


if __name__ == "__main__":
    run_server()
