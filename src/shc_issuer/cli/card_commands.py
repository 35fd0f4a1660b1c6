"""Card issuing CLI commands.

This module provides CLI commands for issuing SMART Health Cards from JSON
records or CSV batches, and for decoding scanned ``shc:/`` payloads.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click

from shc_issuer.config.manager import load_signing_key
from shc_issuer.csv_parser.parser import parse_csv
from shc_issuer.issuer import HealthCardIssuer, create_issuer
from shc_issuer.logging_audit import log_audit_event
from shc_issuer.models.card import IssuedCard
from shc_issuer.qr.chunker import decode
from shc_issuer.signing.jws import decode_compact_jws, verify_compact_jws
from shc_issuer.utils.exceptions import (
    ConfigurationError,
    EncodingError,
    KeyLoadError,
    SHCIssuerError,
    create_error_info,
)

logger = logging.getLogger(__name__)

JWS_FILENAME = "card.jws"
SINGLE_IMAGE_FILENAME = "card.png"


def _issuer_from_context(ctx: click.Context) -> HealthCardIssuer:
    """Build the issuer from the CLI context configuration, exiting on failure."""
    try:
        return create_issuer(ctx.obj["config"])
    except (ConfigurationError, KeyLoadError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        logger.error(f"Failed to create issuer: {e}")
        raise click.exceptions.Exit(1)


def write_card(card: IssuedCard, output_dir: Path) -> list[Path]:
    """Write a card's JWS and images to a directory.
    
    A single-chunk card is written as ``card.png``; a chunked card as
    ``1.png`` .. ``n.png``.
    
    Args:
        card: Issued card
        output_dir: Directory to write into (created if missing)
        
    Returns:
        Paths of the files written
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []

    jws_path = output_dir / JWS_FILENAME
    jws_path.write_text(card.jws, encoding="utf-8")
    written.append(jws_path)

    if len(card.images) == 1:
        image_path = output_dir / SINGLE_IMAGE_FILENAME
        image_path.write_bytes(card.images[0])
        written.append(image_path)
    else:
        for index, image in enumerate(card.images, start=1):
            image_path = output_dir / f"{index}.png"
            image_path.write_bytes(image)
            written.append(image_path)

    logger.debug(f"Wrote {len(written)} file(s) to {output_dir}")
    return written


@click.group(name="card")
def card_group() -> None:
    """Card issuing and decoding commands."""
    pass


@card_group.command("issue")
@click.argument("record", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory for card.jws and QR images (default: current directory)",
)
@click.option("--jws-only", is_flag=True, help="Write only card.jws, skip QR images")
@click.pass_context
def issue_command(ctx: click.Context, record: Path, output_dir: Path, jws_only: bool) -> None:
    """Issue a card from a JSON record.
    
    RECORD is a JSON object with the web form fields: family_name,
    given_names, date_of_birth and first/second/third_immunization_
    performer, lot_number, vaccine_type and date.
    
    Examples:
    
        # Issue into ./out
        shc-issuer card issue patient.json --output-dir out
        
        # Only sign, no images
        shc-issuer card issue patient.json --jws-only
    """
    try:
        fields = json.loads(record.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        click.secho(f"Error: could not read record {record}: {e}", fg="red", err=True)
        sys.exit(1)

    if not isinstance(fields, dict):
        click.secho(f"Error: record {record} must contain a JSON object", fg="red", err=True)
        sys.exit(1)

    issuer = _issuer_from_context(ctx)

    try:
        card = issuer.issue_from_form(
            {name: None if value is None else str(value) for name, value in fields.items()},
            render=not jws_only,
        )
    except SHCIssuerError as e:
        info = create_error_info(e)
        click.secho(f"Error ({info.error_type}): {e}", fg="red", err=True)
        click.echo(f"Fix: {info.remediation}", err=True)
        sys.exit(1)

    written = write_card(card, output_dir)

    click.secho("✓ Card issued", fg="green", bold=True)
    click.echo(f"  JWS length:  {len(card.jws)}")
    click.echo(f"  QR chunks:   {len(card.chunks)}")
    for path in written:
        click.echo(f"  Wrote:       {path}")


@card_group.command("batch")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Directory receiving one sub-directory per issued row",
)
@click.pass_context
def batch_command(ctx: click.Context, file: Path, output_dir: Path) -> None:
    """Issue one card per row of a CSV file.
    
    Each valid row is written to OUTPUT_DIR/row_<n>/. Invalid rows are
    reported and skipped. Exits with code 1 if any row failed.
    
    Example:
    
        shc-issuer card batch patients.csv --output-dir cards
    """
    try:
        rows = parse_csv(file)
    except (SHCIssuerError, FileNotFoundError) as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    issuer = _issuer_from_context(ctx)

    issued = 0
    failures: list[tuple[int, str]] = []
    for row in rows:
        try:
            card = issuer.issue_from_form(row.fields)
        except SHCIssuerError as e:
            failures.append((row.row_number, str(e)))
            logger.warning(f"Row {row.row_number} failed: {type(e).__name__}: {e}")
            continue
        write_card(card, output_dir / f"row_{row.row_number}")
        issued += 1

    log_audit_event("BATCH_ISSUED", {
        "status": "failure" if failures else "success",
        "kid": issuer.key.kid,
        "rows": len(rows),
        "issued": issued,
        "failed": len(failures),
    })

    click.echo(f"Issued {issued} of {len(rows)} card(s) into {output_dir}")
    if failures:
        click.secho(f"{len(failures)} row(s) failed:", fg="red", err=True)
        for row_number, message in failures:
            click.secho(f"  Row {row_number}: {message}", fg="red", err=True)
        sys.exit(1)


@card_group.command("decode")
@click.argument("payloads", nargs=-1, required=True)
@click.option("--verify", is_flag=True, help="Verify the signature against the configured key")
@click.pass_context
def decode_command(ctx: click.Context, payloads: tuple[str, ...], verify: bool) -> None:
    """Decode scanned shc:/ payloads and print the card contents.
    
    Chunks of a multi-QR card may be given in any order.
    
    Example:
    
        shc-issuer card decode "shc:/1/2/5676..." "shc:/2/2/4021..." --verify
    """
    try:
        jws = decode(payloads)
        decoded = decode_compact_jws(jws)
    except EncodingError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    output: dict[str, Any] = {"header": decoded.header, "payload": decoded.payload}
    click.echo(json.dumps(output, indent=2, ensure_ascii=False))

    if verify:
        try:
            key = load_signing_key(ctx.obj["config"])
        except (ConfigurationError, KeyLoadError) as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            sys.exit(1)

        if decoded.header.get("kid") != key.kid:
            click.secho(
                f"✗ Card was signed with kid {decoded.header.get('kid')}, "
                f"configured key is {key.kid}",
                fg="red",
                err=True,
            )
            sys.exit(1)

        if not verify_compact_jws(jws, key.public_key):
            click.secho("✗ Signature is not valid", fg="red", err=True)
            sys.exit(1)

        click.secho("✓ Signature is valid", fg="green", bold=True)
