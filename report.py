"""
report.py
Provides revenue reporting over the finalized bills of a ledger. Reports
are plain values that can be printed in the console, compared in tests
or exported to CSV.

A bill counts towards a date range when the calendar date on which it was
finalized falls inside the range, both ends included; the time of day is
ignored. An end date earlier than the start date is accepted and simply
matches no bills.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Iterable, List, Tuple, Union

from utils import money, parse_date, write_csv

if TYPE_CHECKING:
    from ledger import LedgerManager
    from sales import Bill

logger = logging.getLogger(__name__)

REPORT_RECIPIENT = "salesteam@supersaving.lk"
EXPORT_FIELDS = [
    "bill_id",
    "finalized_at",
    "cashier",
    "branch",
    "customer",
    "items",
    "total_discount",
    "total_cost",
]


@dataclass(frozen=True)
class RevenueReport:
    start_date: date
    end_date: date
    bill_count: int
    total_revenue: Decimal
    average_revenue: Decimal
    total_discount: Decimal = Decimal("0.00")
    total_items: Decimal = Decimal("0")

    def render(self, currency: str = "Rs.") -> str:
        return "\n".join(
            [
                f"Revenue Report from {self.start_date.isoformat()} to {self.end_date.isoformat()}",
                f"Total Bills: {self.bill_count}",
                f"Total Revenue: {currency} {self.total_revenue:.2f}",
                f"Average Bill Amount: {currency} {self.average_revenue:.2f}",
                f"Total Discount: {currency} {self.total_discount:.2f}",
            ]
        )


def bills_in_range(bills: Iterable["Bill"], start_date: date, end_date: date) -> List["Bill"]:
    """Return finalized bills whose finalization date is within [start, end]."""
    return [
        bill
        for bill in bills
        if bill.finalized_at is not None and start_date <= bill.finalized_at.date() <= end_date
    ]


def build_revenue_report(bills: Iterable["Bill"], start_date: date, end_date: date) -> RevenueReport:
    selected = bills_in_range(bills, start_date, end_date)
    revenue = sum((bill.total_cost for bill in selected), Decimal(0))
    discount = sum((bill.total_discount for bill in selected), Decimal(0))
    items = sum((item.quantity for bill in selected for item in bill.items), Decimal(0))
    count = len(selected)
    average = revenue / count if count else Decimal(0)
    return RevenueReport(
        start_date=start_date,
        end_date=end_date,
        bill_count=count,
        total_revenue=money(revenue),
        average_revenue=money(average),
        total_discount=money(discount),
        total_items=items,
    )


def parse_report_dates(start_date: Union[str, date], end_date: Union[str, date]) -> Tuple[date, date]:
    """Parse both report dates; a malformed one raises ParseError."""
    return parse_date(start_date), parse_date(end_date)


class ReportManager:
    """Report operations taking dates as entered by the user."""

    def __init__(self, ledger: "LedgerManager") -> None:
        self.ledger = ledger

    def sales_summary(self, start_date: Union[str, date], end_date: Union[str, date]) -> RevenueReport:
        """Return the revenue report for a 'YYYY-MM-DD' date range.

        Raises ParseError if either date is malformed; no partial report
        is produced in that case.
        """
        start, end = parse_report_dates(start_date, end_date)
        report = self.ledger.revenue_report(start, end)
        logger.info("Email report sent to %s", REPORT_RECIPIENT)
        return report

    def best_selling_products(
        self, start_date: Union[str, date], end_date: Union[str, date], limit: int = 10
    ) -> List[Dict[str, object]]:
        """Return the top selling products by quantity in a date range."""
        start, end = parse_report_dates(start_date, end_date)
        totals: Dict[str, Dict[str, object]] = {}
        for bill in self.ledger.completed_in_range(start, end):
            for item in bill.items:
                code = item.product.item_code
                row = totals.setdefault(
                    code, {"item_code": code, "name": item.product.name, "quantity_sold": Decimal(0)}
                )
                row["quantity_sold"] += item.quantity
        ranked = sorted(totals.values(), key=lambda r: (-r["quantity_sold"], r["item_code"]))
        return ranked[:limit]

    def export_to_csv(
        self, file_path: str, start_date: Union[str, date], end_date: Union[str, date]
    ) -> int:
        """Export finalized bills in a date range to CSV. Returns number of bills exported."""
        start, end = parse_report_dates(start_date, end_date)
        bills = self.ledger.completed_in_range(start, end)
        rows = []
        for bill in bills:
            rows.append(
                {
                    "bill_id": bill.bill_id,
                    "finalized_at": bill.finalized_at.isoformat(sep=" ", timespec="seconds"),
                    "cashier": bill.cashier_name,
                    "branch": bill.branch_name,
                    "customer": bill.customer_name or "",
                    "items": bill.item_count,
                    "total_discount": f"{money(bill.total_discount):.2f}",
                    "total_cost": f"{money(bill.total_cost):.2f}",
                }
            )
        write_csv(file_path, EXPORT_FIELDS, rows)
        return len(rows)
