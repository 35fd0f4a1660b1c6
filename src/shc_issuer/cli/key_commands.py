"""Signing key CLI commands.

This module provides CLI commands for generating P-256 signing keys and
printing the public key material verifiers need.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from shc_issuer.config.manager import ENV_PREFIX, load_signing_key
from shc_issuer.logging_audit import log_audit_event
from shc_issuer.signing.jwks import JWKSPublisher
from shc_issuer.signing.key_loader import export_key_params, export_pem, generate_key
from shc_issuer.signing.keys import ECSigningKey
from shc_issuer.utils.exceptions import ConfigurationError, KeyLoadError

logger = logging.getLogger(__name__)


def _configured_key(ctx: click.Context) -> ECSigningKey:
    """Load the signing key from the CLI context configuration, exiting on failure."""
    try:
        return load_signing_key(ctx.obj["config"])
    except (ConfigurationError, KeyLoadError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        logger.error(f"Failed to load signing key: {e}")
        raise click.exceptions.Exit(1)


@click.group(name="keys")
def keys_group() -> None:
    """Signing key generation and inspection commands."""
    pass


@keys_group.command("generate")
@click.option(
    "--pem",
    "pem_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write the private key to this PEM file",
)
def generate_command(pem_path: Optional[Path]) -> None:
    """Generate a new P-256 signing key.
    
    Prints shell export lines for the decimal key parameters. Keep the
    output secret: SHC_KEY_D is the private key.
    
    Examples:
    
        # Generate a key and load it into the current shell
        eval "$(shc-issuer keys generate)"
        
        # Also keep a PEM copy
        shc-issuer keys generate --pem issuer-key.pem
    """
    key = generate_key()
    params = export_key_params(key)

    if pem_path is not None:
        pem_path.parent.mkdir(parents=True, exist_ok=True)
        pem_path.write_bytes(export_pem(key))
        pem_path.chmod(0o600)
        click.echo(f"# Private key written to {pem_path}", err=True)

    click.echo(f"export {ENV_PREFIX}KEY_D={params['d']}")
    click.echo(f"export {ENV_PREFIX}KEY_X={params['x']}")
    click.echo(f"export {ENV_PREFIX}KEY_Y={params['y']}")

    log_audit_event("KEY_GENERATED", {"status": "success", "kid": key.kid})


@keys_group.command("jwks")
@click.pass_context
def jwks_command(ctx: click.Context) -> None:
    """Print the JWKS document for the configured key.
    
    Publish the output at <issuer_url>/.well-known/jwks.json.
    """
    key = _configured_key(ctx)
    click.echo(JWKSPublisher(key).jwks_json().decode("utf-8"))


@keys_group.command("kid")
@click.pass_context
def kid_command(ctx: click.Context) -> None:
    """Print the key ID (JWK thumbprint) of the configured key."""
    key = _configured_key(ctx)
    click.echo(key.kid)
