"""Document number formats.

Format:
  waybill:    PX{year}{seq:5}     e.g. PX202500001
  invoice:    INV-{year}-{seq:6}  e.g. INV-2025-000001
  remittance: REM-{year}-{seq:6}  e.g. REM-2025-000001

Sequences are yearly; the counter itself lives in the database.
"""

import re

from pathxpress.domain.errors import ConflictError

WAYBILL = "waybill"
INVOICE = "invoice"
REMITTANCE = "remittance"

NUMBER_FORMATS = {
    WAYBILL: ("PX{year}", 5),
    INVOICE: ("INV-{year}-", 6),
    REMITTANCE: ("REM-{year}-", 6),
}

WAYBILL_PATTERN = re.compile(r"^PX\d{9}$")


def format_number(sequence_name: str, year: int, value: int) -> str:
    """Render a document number from its sequence value.

    Raises:
        ConflictError: If the yearly sequence no longer fits its width
    """
    prefix, width = NUMBER_FORMATS[sequence_name]
    if value >= 10**width:
        raise ConflictError(f"{sequence_name} sequence for {year} is exhausted")
    return f"{prefix.format(year=year)}{value:0{width}d}"


def is_waybill_number(value: str) -> bool:
    """Return True if value looks like a waybill number."""
    return bool(WAYBILL_PATTERN.match(value))
