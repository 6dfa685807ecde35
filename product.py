"""
product.py
Defines the Product record and the Catalog used to look products up by
item code at checkout. The catalog is loaded once from a CSV file and is
read-only afterwards; bills hold references to the same Product objects.

Catalog file format (one product per line, optional header line starting
with "Item Code" or "itemCode"):

    itemCode,name,price,weightSize,manufactureDate,expiryDate,manufacturer

Rows with fewer than seven fields or a price that is not a number are
skipped with a warning so that a partially corrupt file still loads the
usable products.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, List

from errors import NotFoundError, ParseError
from utils import read_csv_rows, to_decimal

logger = logging.getLogger(__name__)

HEADER_PREFIXES = ("Item Code", "itemCode")
FIELD_COUNT = 7


@dataclass(frozen=True)
class Product:
    item_code: str
    name: str
    unit_price: Decimal
    weight_size: str = ""
    manufacture_date: str = ""
    expiry_date: str = ""
    manufacturer: str = ""

    @classmethod
    def from_row(cls, row: List[str]) -> "Product":
        """Build a product from a catalog row, raising ParseError if malformed."""
        if len(row) < FIELD_COUNT:
            raise ParseError(f"expected {FIELD_COUNT} fields, got {len(row)}")
        code, name, price, weight_size, manufactured, expires, manufacturer = row[:FIELD_COUNT]
        return cls(
            item_code=code,
            name=name,
            unit_price=to_decimal(price),
            weight_size=weight_size,
            manufacture_date=manufactured,
            expiry_date=expires,
            manufacturer=manufacturer,
        )


class Catalog:
    """Immutable item code to product lookup."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        table = {}
        for product in products:
            # later rows win, as when the file is edited by appending
            table[product.item_code] = product
        self._products = MappingProxyType(table)

    @classmethod
    def load_from_csv(cls, file_path: str) -> "Catalog":
        """Load a catalog from a CSV file.

        A missing or unreadable file is logged and produces an empty
        catalog; malformed rows are logged and skipped.
        """
        try:
            rows = read_csv_rows(file_path)
        except OSError as e:
            logger.error("Error loading product database %s: %s", file_path, e)
            return cls()
        products = []
        for line_no, row in enumerate(rows, start=1):
            if not any(row):
                continue
            if line_no == 1 and row[0].startswith(HEADER_PREFIXES):
                continue
            try:
                products.append(Product.from_row(row))
            except ParseError as e:
                logger.warning("Skipping catalog line %d in %s: %s", line_no, file_path, e)
        catalog = cls(products)
        logger.info("Loaded %d products from %s", len(catalog), file_path)
        return catalog

    def lookup(self, item_code: str) -> Product:
        """Return the product for an item code or raise NotFoundError."""
        code = item_code.strip()
        try:
            return self._products[code]
        except KeyError:
            raise NotFoundError(f"Product not found with code: {code}") from None

    def products(self) -> List[Product]:
        """Return all products ordered by item code."""
        return sorted(self._products.values(), key=lambda p: p.item_code)

    def __contains__(self, item_code: object) -> bool:
        return isinstance(item_code, str) and item_code.strip() in self._products

    def __len__(self) -> int:
        return len(self._products)
