"""CSV reader for batch issuing of immunization cards.

Each CSV row carries the same fields as the issuing web form. Rows are read
with pandas and handed to the form validator one at a time, so one bad row
does not stop the rest of the batch.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from shc_issuer.forms.validator import FORM_FIELDS, PATIENT_FIELDS, immunization_fields
from shc_issuer.utils.exceptions import ValidationError


logger = logging.getLogger(__name__)

# Required CSV columns
REQUIRED_COLUMNS = PATIENT_FIELDS + immunization_fields("first")

# Optional CSV columns
OPTIONAL_COLUMNS = [name for name in FORM_FIELDS if name not in REQUIRED_COLUMNS]


@dataclass
class CsvRow:
    """One record read from a batch CSV.
    
    Attributes:
        row_number: 1-indexed row number (including header) for user readability
        fields: Form field values, blank cells as empty strings
    """

    row_number: int
    fields: dict[str, str]


def parse_csv(file_path: Path) -> list[CsvRow]:
    """Read immunization records from a CSV file.
    
    Args:
        file_path: Path to a UTF-8 CSV file with form field columns
        
    Returns:
        One CsvRow per data row, in file order
        
    Raises:
        FileNotFoundError: If the CSV file does not exist
        ValidationError: If the file cannot be read or required columns are missing
    """
    logger.info(f"Loading CSV from {file_path}")

    if not file_path.exists():
        raise FileNotFoundError(f"CSV file not found: {file_path}")

    # Read every column as text so lot numbers and dates keep leading zeros
    try:
        df = pd.read_csv(file_path, encoding="utf-8", dtype=str, keep_default_na=False)
    except Exception as e:
        raise ValidationError(
            f"Failed to read CSV file {file_path}. Ensure file is valid CSV with UTF-8 encoding. Error: {e}"
        ) from e

    missing_columns = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing_columns:
        raise ValidationError(
            f"Missing required columns: {', '.join(missing_columns)}. "
            f"Required columns are: {', '.join(REQUIRED_COLUMNS)}"
        )

    unknown_columns = [
        col for col in df.columns if col not in REQUIRED_COLUMNS and col not in OPTIONAL_COLUMNS
    ]
    if unknown_columns:
        logger.warning(
            f"CSV contains unknown columns that will be ignored: {', '.join(unknown_columns)}"
        )

    rows = []
    for idx, record in df.iterrows():
        row_num = idx + 2  # +2 because: +1 for header, +1 for 1-indexed
        fields = {
            name: str(record[name]) if name in df.columns else ""
            for name in FORM_FIELDS
        }
        rows.append(CsvRow(row_number=row_num, fields=fields))

    logger.info(f"Successfully read {len(rows)} record(s)")
    return rows
