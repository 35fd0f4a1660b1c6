"""Entry point for running shc_issuer as a module.

This allows the package to be executed as:
    python -m shc_issuer
"""

from shc_issuer.cli.main import cli

if __name__ == "__main__":
    cli()
