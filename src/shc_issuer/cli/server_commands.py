"""CLI command for running the issuing web server."""

import logging
from typing import Optional

import click

from shc_issuer.utils.exceptions import ConfigurationError, KeyLoadError
from shc_issuer.web.app import run_server

logger = logging.getLogger(__name__)


@click.command("serve")
@click.option("--host", type=str, default=None, help="Bind address (default: from config)")
@click.option("--port", type=int, default=None, help="Bind port (default: from config)")
@click.option("--debug", is_flag=True, help="Enable Flask debug mode")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int], debug: bool) -> None:
    """Run the card issuing web server.
    
    Serves POST / for issuing, GET /.well-known/jwks.json for verifiers
    and GET /health for monitoring.
    
    Examples:
    
        # Start on the configured host and port
        shc-issuer serve
        
        # Start on a custom port
        shc-issuer serve --port 9000
    """
    config = ctx.obj["config"]
    try:
        run_server(host=host, port=port, config=config, debug=debug)
    except (ConfigurationError, KeyLoadError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        logger.error(f"Server startup failed: {e}")
        raise click.exceptions.Exit(1)
