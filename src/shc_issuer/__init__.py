"""SMART Health Card issuer for COVID-19 immunization records."""

__version__ = "0.1.0"
