"""
db.py
This module provides the optional SQLite store used by the POS ledger to
keep pending bills between sessions and to archive finalized bills. It is
responsible for creating the schema on first use and for reading and
writing bills with their line items.

Every write runs inside a single transaction (`with self.connection`), so
a bill is either stored completely or not at all, even if the process is
interrupted part way. Amounts are stored as TEXT to preserve their exact
Decimal values.

Usage:
    from db import Database
    db = Database('pos.db')
    db.init_db()  # create tables if they don't exist
    ledger = LedgerManager(catalog, store=db)
"""

from __future__ import annotations

import sqlite3
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List

from product import Catalog, Product
from sales import Bill, BillState, LineItem


class Database:
    """Encapsulates a connection to a SQLite database.

    On instantiation the database will be created if it does not already
    exist. The `init_db` method creates all necessary tables.
    """

    def __init__(self, db_path: str = "pos.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self.connection.row_factory = sqlite3.Row  # access columns by name
        self.connection.execute("PRAGMA foreign_keys = ON;")

    def init_db(self) -> None:
        """Create the database schema if it does not already exist."""
        cursor = self.connection.cursor()

        # Bills table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS bills (
                id TEXT PRIMARY KEY,
                cashier TEXT NOT NULL,
                branch TEXT NOT NULL,
                customer TEXT,
                created_at TEXT NOT NULL,
                finalized_at TEXT,
                state TEXT NOT NULL CHECK (state IN ('pending','finalized'))
            );
            """
        )

        # Bill items table; name and price are a snapshot of the product
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS bill_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                bill_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                item_code TEXT NOT NULL,
                name TEXT NOT NULL,
                unit_price TEXT NOT NULL,
                quantity TEXT NOT NULL,
                discount TEXT NOT NULL,
                FOREIGN KEY(bill_id) REFERENCES bills(id) ON DELETE CASCADE
            );
            """
        )
        self.connection.commit()

    def _insert_bill(self, conn: sqlite3.Connection, bill: Bill) -> None:
        conn.execute(
            """
            INSERT INTO bills (id, cashier, branch, customer, created_at, finalized_at, state)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                bill.bill_id,
                bill.cashier_name,
                bill.branch_name,
                bill.customer_name,
                bill.created_at.isoformat(),
                bill.finalized_at.isoformat() if bill.finalized_at else None,
                bill.state.value,
            ),
        )
        conn.executemany(
            """
            INSERT INTO bill_items (bill_id, position, item_code, name, unit_price, quantity, discount)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    bill.bill_id,
                    position,
                    item.product.item_code,
                    item.product.name,
                    str(item.product.unit_price),
                    str(item.quantity),
                    str(item.discount_percentage),
                )
                for position, item in enumerate(bill.items)
            ],
        )

    def save_pending(self, bills: Iterable[Bill]) -> None:
        """Replace the stored pending bills with the given ones."""
        with self.connection as conn:
            conn.execute("DELETE FROM bills WHERE state = ?", (BillState.PENDING.value,))
            for bill in bills:
                self._insert_bill(conn, bill)

    def archive_bill(self, bill: Bill) -> None:
        """Store a finalized bill."""
        if bill.state is not BillState.FINALIZED:
            raise ValueError(f"Only finalized bills can be archived, {bill.bill_id} is {bill.state.value}")
        with self.connection as conn:
            self._insert_bill(conn, bill)

    def _load(self, state: BillState, catalog: Catalog) -> List[Bill]:
        cursor = self.connection.cursor()
        cursor.execute(
            "SELECT * FROM bills WHERE state = ? ORDER BY rowid", (state.value,)
        )
        bills = []
        for row in cursor.fetchall():
            items_cursor = self.connection.cursor()
            items_cursor.execute(
                "SELECT * FROM bill_items WHERE bill_id = ? ORDER BY position", (row["id"],)
            )
            items = [self._line_item(item, catalog) for item in items_cursor.fetchall()]
            bills.append(
                Bill(
                    bill_id=row["id"],
                    cashier_name=row["cashier"],
                    branch_name=row["branch"],
                    customer_name=row["customer"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                    items=items,
                    state=state,
                    finalized_at=(
                        datetime.fromisoformat(row["finalized_at"]) if row["finalized_at"] else None
                    ),
                )
            )
        return bills

    @staticmethod
    def _line_item(row: sqlite3.Row, catalog: Catalog) -> LineItem:
        # name and price always come from the stored snapshot
        name, unit_price = row["name"], Decimal(row["unit_price"])
        if row["item_code"] in catalog:
            product = replace(catalog.lookup(row["item_code"]), name=name, unit_price=unit_price)
        else:
            product = Product(row["item_code"], name, unit_price)
        return LineItem(product, Decimal(row["quantity"]), Decimal(row["discount"]))

    def load_pending(self, catalog: Catalog) -> List[Bill]:
        return self._load(BillState.PENDING, catalog)

    def load_completed(self, catalog: Catalog) -> List[Bill]:
        return self._load(BillState.FINALIZED, catalog)

    def close(self) -> None:
        """Close the database connection."""
        self.connection.close()
