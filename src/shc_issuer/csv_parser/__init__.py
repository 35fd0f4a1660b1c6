"""CSV parser module.

This module reads batch immunization records from CSV files.
"""

from shc_issuer.csv_parser.parser import CsvRow, parse_csv

__all__ = [
    "CsvRow",
    "parse_csv",
]
