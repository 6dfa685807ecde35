from datetime import date, datetime
from decimal import Decimal

import pytest

from errors import IllegalTransition, InvalidDiscount, NotFoundError
from sales import BillState


def test_create_bill(ledger):
    bill = ledger.create_bill(" Nimal ", "Colombo 03", "  ")
    assert bill.bill_id.startswith("BILL-")
    assert bill.cashier_name == "Nimal"
    assert bill.customer_name is None
    assert bill.created_at == datetime(2024, 1, 5, 10, 30, 0)
    assert bill.state is BillState.ACTIVE


def test_bill_ids_unique_with_frozen_clock(ledger):
    ids = {ledger.create_bill("A", "B").bill_id for _ in range(50)}
    assert len(ids) == 50


def test_add_item_scenario(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    item = ledger.add_item(bill, "P1", 2, 10)
    assert item.net_amount == Decimal("180.00")
    assert bill.total_cost == Decimal("180.00")


def test_failed_add_leaves_bill_unchanged(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.add_item(bill, "P1", 1, 0)
    with pytest.raises(NotFoundError):
        ledger.add_item(bill, "ZZ", 1, 0)
    with pytest.raises(InvalidDiscount):
        ledger.add_item(bill, "P2", 1, 90)
    assert [i.product.item_code for i in bill.items] == ["P1"]


def test_park_and_resume(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.add_item(bill, "P1", 1, 0)
    ledger.park(bill)
    assert ledger.pending_bills == (bill,)
    assert ledger.get_pending(bill.bill_id) is bill

    resumed = ledger.resume(bill.bill_id)
    assert resumed is bill
    assert resumed.state is BillState.ACTIVE
    assert ledger.pending_bills == ()
    assert resumed.item_count == 1


def test_resume_unknown_bill(ledger):
    with pytest.raises(NotFoundError):
        ledger.resume("BILL-0")


def test_finalize_archives_once(ledger, clock):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    clock.now = datetime(2024, 1, 5, 18, 0, 0)
    ledger.finalize(bill)
    assert bill.finalized_at == datetime(2024, 1, 5, 18, 0, 0)
    assert ledger.completed_bills == (bill,)
    with pytest.raises(IllegalTransition):
        ledger.finalize(bill)
    assert len(ledger.completed_bills) == 1


def test_pending_bill_cannot_be_finalized(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.park(bill)
    with pytest.raises(IllegalTransition):
        ledger.finalize(bill)
    assert ledger.completed_bills == ()
    assert ledger.pending_bills == (bill,)


def test_cancel_pending_bill(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.park(bill)
    ledger.cancel(bill)
    assert bill.state is BillState.CANCELLED
    assert ledger.pending_bills == ()
    assert ledger.completed_bills == ()


def test_cancel_active_bill(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.add_item(bill, "P1", 1, 0)
    ledger.cancel(bill)
    assert ledger.completed_bills == ()
    assert ledger.revenue_report(date(2024, 1, 1), date(2024, 12, 31)).bill_count == 0


def test_cancel_finalized_bill_rejected(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.finalize(bill)
    with pytest.raises(IllegalTransition):
        ledger.cancel(bill)
    assert ledger.completed_bills == (bill,)


def test_full_lifecycle_round_trip(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.add_item(bill, "P1", 1, 0)
    ledger.park(bill)
    ledger.resume(bill.bill_id)
    ledger.add_item(bill, "P3", 1, 0)
    ledger.remove_item(bill, 0)
    ledger.finalize(bill)
    assert bill.total_cost == Decimal("50.00")


def _finalize_bill(ledger, clock, moment, quantity):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.add_item(bill, "P3", quantity, 0)
    clock.now = moment
    return ledger.finalize(bill)


def test_revenue_report_scenario(ledger, clock):
    _finalize_bill(ledger, clock, datetime(2024, 1, 5, 9, 0), 1)
    _finalize_bill(ledger, clock, datetime(2024, 1, 10, 23, 59, 59), 3)
    _finalize_bill(ledger, clock, datetime(2024, 1, 11, 0, 0, 1), 1)

    report = ledger.revenue_report(date(2024, 1, 1), date(2024, 1, 10))

    assert report.bill_count == 2
    assert report.total_revenue == Decimal("200.00")
    assert report.average_revenue == Decimal("100.00")
    assert report.total_items == Decimal("4")


def test_revenue_report_empty(ledger):
    report = ledger.revenue_report(date(2024, 1, 1), date(2024, 1, 31))
    assert report.bill_count == 0
    assert report.total_revenue == Decimal("0.00")
    assert report.average_revenue == Decimal("0.00")


def test_revenue_report_reversed_range_is_empty(ledger, clock):
    _finalize_bill(ledger, clock, datetime(2024, 1, 5, 9, 0), 1)
    report = ledger.revenue_report(date(2024, 1, 10), date(2024, 1, 1))
    assert report.bill_count == 0
    assert report.total_revenue == Decimal("0.00")


def test_revenue_report_is_idempotent(ledger, clock):
    _finalize_bill(ledger, clock, datetime(2024, 1, 5, 9, 0), 2)
    first = ledger.revenue_report(date(2024, 1, 5), date(2024, 1, 5))
    second = ledger.revenue_report(date(2024, 1, 5), date(2024, 1, 5))
    assert first == second


def test_empty_finalized_bill_counts_as_zero(ledger, clock):
    _finalize_bill(ledger, clock, datetime(2024, 1, 5, 9, 0), 1)
    ledger.finalize(ledger.create_bill("Nimal", "Colombo 03"))
    report = ledger.revenue_report(date(2024, 1, 5), date(2024, 1, 5))
    assert report.bill_count == 2
    assert report.total_revenue == Decimal("50.00")
    assert report.average_revenue == Decimal("25.00")


def test_average_is_rounded_half_up(ledger, clock):
    for quantity in ("0.01", "0.01", "0.02"):
        bill = ledger.create_bill("Nimal", "Colombo 03")
        ledger.add_item(bill, "P1", quantity, 0)
        ledger.finalize(bill)
    # 4.00 / 3
    report = ledger.revenue_report(date(2024, 1, 5), date(2024, 1, 5))
    assert report.total_revenue == Decimal("4.00")
    assert report.average_revenue == Decimal("1.33")


def test_revenue_report_with_very_large_quantity(ledger):
    bill = ledger.create_bill("Nimal", "Colombo 03")
    ledger.add_item(bill, "P1", "1e30", 0)
    ledger.finalize(bill)
    report = ledger.revenue_report(date(2024, 1, 5), date(2024, 1, 5))
    assert report.total_revenue == Decimal("1E+32")
    assert report.average_revenue == Decimal("1E+32")
    assert report.render().splitlines()[2] == "Total Revenue: Rs. 1" + "0" * 32 + ".00"
