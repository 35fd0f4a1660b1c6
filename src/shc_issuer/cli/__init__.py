"""Command-line interface for the SMART Health Card issuer."""
