"""
utils.py
This module hosts utility functions that are used across the POS system.
These include money rounding, decimal and date parsing and the CSV
import/export helpers. Keeping these helpers separate improves modularity
and allows code reuse without cyclic dependencies.
"""

import csv
import os
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Dict, Iterable, List, Union

from errors import ParseError

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
DATE_FORMAT = "%Y-%m-%d"


def money(value: Number) -> Decimal:
    """Round a monetary value to two decimal places, halves rounded up."""
    value = to_decimal(value)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the cents
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Number) -> Decimal:
    """Convert a user or file supplied number to Decimal.

    Floats go through `str` so that 0.1 becomes Decimal('0.1') rather than
    its binary expansion. Raises ParseError for anything non-numeric,
    including NaN and infinities.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ParseError(f"Not a number: {value!r}") from None
    if not result.is_finite():
        raise ParseError(f"Not a number: {value!r}")
    return result


def parse_date(value: Union[str, date]) -> date:
    """Parse a 'YYYY-MM-DD' string into a date.

    Dates are validated once at the boundary; date objects pass through.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except (AttributeError, ValueError):
        raise ParseError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None


def read_csv_rows(file_path: str) -> List[List[str]]:
    """Read a CSV file and return its rows as lists of stripped strings.

    Unlike `csv.DictReader` the header row is not interpreted, because the
    catalog file may or may not carry one. Raises OSError if the file
    cannot be opened.
    """
    with open(file_path, "r", newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        return [[field.strip() for field in row] for row in reader]


def write_csv(file_path: str, fieldnames: List[str], rows: Iterable[Dict[str, str]]) -> None:
    """Write an iterable of dictionaries to a CSV file.

    The order of keys in each row must match the provided fieldnames.
    """
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
