"""
ledger.py
The LedgerManager owns the bills of a POS session. It creates bills,
parks them as pending, resumes, finalizes or cancels them, and folds the
finalized bills into revenue reports.

Two collections are kept and never overlap: pending bills, parked by a
cashier and waiting to be resumed, and completed bills, an append-only
archive of finalized bills. Cancelled bills are simply dropped. When a
Database is supplied the pending set is saved after every change and each
finalized bill is archived once; the in-memory collections remain the
source of truth for the session.

Usage:
    from product import Catalog
    from ledger import LedgerManager

    ledger = LedgerManager(Catalog.load_from_csv("products.csv"))
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.add_item(bill, "P1", quantity=2, discount=10)
    ledger.finalize(bill)
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from threading import Lock
from typing import TYPE_CHECKING, Callable, List, Optional

from errors import NotFoundError
from product import Catalog
from report import RevenueReport, bills_in_range, build_revenue_report
from sales import Bill, BillIdGenerator, LineItem, new_line_item
from utils import Number

if TYPE_CHECKING:
    from db import Database

logger = logging.getLogger(__name__)


class LedgerManager:
    def __init__(
        self,
        catalog: Catalog,
        store: Optional[Database] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.clock = clock
        self._ids = BillIdGenerator()
        self._pending: List[Bill] = []
        self._completed: List[Bill] = []
        self._lock = Lock()
        if store is not None:
            self._load_from_store()

    def _load_from_store(self) -> None:
        self._pending = self.store.load_pending(self.catalog)
        self._completed = self.store.load_completed(self.catalog)
        for bill in self._pending + self._completed:
            self._ids.observe(bill.bill_id)
        logger.info(
            "Loaded %d pending and %d completed bills", len(self._pending), len(self._completed)
        )

    def _save_pending(self) -> None:
        # caller holds the lock
        if self.store is not None:
            self.store.save_pending(self._pending)
            logger.info("Pending bills saved (%d)", len(self._pending))

    @property
    def pending_bills(self) -> tuple:
        with self._lock:
            return tuple(self._pending)

    @property
    def completed_bills(self) -> tuple:
        with self._lock:
            return tuple(self._completed)

    def get_pending(self, bill_id: str) -> Bill:
        with self._lock:
            for bill in self._pending:
                if bill.bill_id == bill_id:
                    return bill
        raise NotFoundError(f"No pending bill with id {bill_id}")

    # Editing
    def create_bill(
        self, cashier_name: str, branch_name: str, customer_name: Optional[str] = None
    ) -> Bill:
        now = self.clock()
        bill = Bill(
            bill_id=self._ids(now),
            cashier_name=cashier_name.strip(),
            branch_name=branch_name.strip(),
            customer_name=(customer_name or "").strip() or None,
            created_at=now,
        )
        logger.debug("Created bill %s", bill.bill_id)
        return bill

    def add_item(self, bill: Bill, item_code: str, quantity: Number, discount: Number = 0) -> LineItem:
        """Look up a product and append it to the bill.

        Raises NotFoundError, InvalidQuantity, InvalidDiscount or a
        StateError; the bill is unchanged when any of them is raised.
        """
        product = self.catalog.lookup(item_code)
        item = new_line_item(product, quantity, discount)
        bill.add_item(item)
        return item

    def remove_item(self, bill: Bill, index: int) -> LineItem:
        return bill.remove_item(index)

    # Lifecycle
    def park(self, bill: Bill) -> None:
        """Hold an active bill so it can be resumed later."""
        with self._lock:
            bill.park()
            self._pending.append(bill)
            self._save_pending()
        logger.info("Bill %s saved as pending", bill.bill_id)

    def resume(self, bill_id: str) -> Bill:
        """Take a parked bill out of the pending list and make it active."""
        bill = self.get_pending(bill_id)
        with self._lock:
            bill.resume()
            self._pending.remove(bill)
            self._save_pending()
        logger.info("Bill %s resumed", bill.bill_id)
        return bill

    def finalize(self, bill: Bill) -> Bill:
        """Commit an active bill to the revenue archive."""
        with self._lock:
            bill.finalize(self.clock())
            self._completed.append(bill)
            if self.store is not None:
                self.store.archive_bill(bill)
        logger.info("Bill %s finalized, total %s", bill.bill_id, bill.total_cost)
        logger.info("Bill saved as PDF: %s.pdf", bill.bill_id)
        return bill

    def cancel(self, bill: Bill) -> None:
        """Discard an active or pending bill."""
        with self._lock:
            was_pending = bill in self._pending
            bill.cancel()
            if was_pending:
                self._pending.remove(bill)
                self._save_pending()
        logger.info("Bill %s cancelled", bill.bill_id)

    # Reporting
    def revenue_report(self, start_date: date, end_date: date) -> RevenueReport:
        """Summarise finalized bills whose finalization date is in range.

        Both ends are inclusive. An end date before the start date is not
        an error; it simply matches nothing.
        """
        return build_revenue_report(self.completed_bills, start_date, end_date)

    def completed_in_range(self, start_date: date, end_date: date) -> List[Bill]:
        return bills_in_range(self.completed_bills, start_date, end_date)
