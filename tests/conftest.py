from datetime import datetime
from decimal import Decimal

import pytest

from ledger import LedgerManager
from product import Catalog, Product
from report import ReportManager


class FakeClock:
    """Callable clock whose time is set by the test."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def catalog():
    return Catalog(
        [
            Product("P1", "Rice", Decimal("100.00"), "1kg", "2024-01-01", "2025-01-01", "Araliya"),
            Product("P2", "Milk", Decimal("25.50"), "1l", "2024-01-01", "2024-01-10", "Highland"),
            Product("P3", "Bread", Decimal("50.00"), "450g", "2024-01-01", "2024-01-04", "Perera"),
        ]
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 5, 10, 30, 0))


@pytest.fixture
def ledger(catalog, clock):
    return LedgerManager(catalog, clock=clock)


@pytest.fixture
def reports(ledger):
    return ReportManager(ledger)
