"""Main CLI entry point for the SMART Health Card issuer.

This module provides the main Click command group for the shc-issuer CLI.
"""

from pathlib import Path
from typing import Optional

import click

from shc_issuer import __version__
from shc_issuer.cli.card_commands import card_group
from shc_issuer.cli.key_commands import keys_group
from shc_issuer.cli.server_commands import serve
from shc_issuer.config import load_config
from shc_issuer.logging_audit import configure_logging
from shc_issuer.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="shc-issuer")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact PII (patient names, birth dates, lot numbers) from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """SMART Health Card issuer - signed immunization QR codes.
    
    Encodes COVID-19 immunization records as ES256-signed, compressed
    SMART Health Cards and renders them as QR codes.
    
    Common usage:
    
        # Generate a signing key
        eval "$(shc-issuer keys generate)"
        
        # Issue a card from a JSON record
        shc-issuer card issue patient.json --output-dir out
        
        # Run the issuing web server
        shc-issuer serve --port 8080
        
        # Enable verbose logging for debugging
        shc-issuer --verbose card issue patient.json
    
    Use --help with any command for more information.
    """
    # Ensure context object exists for subcommands
    ctx.ensure_object(dict)
    
    # Load configuration
    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)
    
    # Store CLI flags in context
    ctx.obj["verbose"] = verbose
    ctx.obj["redact_pii"] = redact_pii
    ctx.obj["log_file"] = log_file
    
    # Configure logging with precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else config_obj.logging.level
    log_file_path = log_file if log_file else config_obj.logging.log_file
    redact_pii_setting = redact_pii if redact_pii else config_obj.logging.redact_pii
    
    configure_logging(
        level=log_level, log_file=log_file_path, redact_pii=redact_pii_setting
    )


# Register command groups
cli.add_command(keys_group)
cli.add_command(card_group)
cli.add_command(serve)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.
    
    Args:
        config_file: Path to configuration file to validate
        
    Example:
        shc-issuer config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)
    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)
    
    click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
    click.echo(f"\nConfiguration file: {config_file}")
    click.echo(f"\nIssuer:")
    click.echo(f"  Issuer URL:  {config_obj.issuer.issuer_url}")
    
    click.echo(f"\nSigning key:")
    if not config_obj.key.is_configured:
        key_source = "Not configured"
    elif config_obj.key.has_params:
        key_source = "d/x/y parameters"
    else:
        key_source = f"PEM file {config_obj.key.pem_path}"
    click.echo(f"  Source:      {key_source}")
    
    click.echo(f"\nQR codes:")
    click.echo(f"  Chunking:    {config_obj.qr.chunking.value}")
    click.echo(f"  Box size:    {config_obj.qr.box_size}")
    click.echo(f"  Border:      {config_obj.qr.border}")
    click.echo(f"  Error corr.: {config_obj.qr.error_correction}")
    
    click.echo(f"\nServer:")
    click.echo(f"  Address:     {config_obj.server.host}:{config_obj.server.port}")
    
    click.echo(f"\nLogging:")
    click.echo(f"  Level:       {config_obj.logging.level}")
    click.echo(f"  Log file:    {config_obj.logging.log_file}")
    click.echo(f"  Redact PII:  {config_obj.logging.redact_pii}")


cli.add_command(config)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"shc-issuer version {__version__}")


if __name__ == "__main__":
    cli()
