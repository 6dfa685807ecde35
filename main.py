"""
main.py

This is the entry point for the POS billing application. It contains the
command line interface (CLI): a menu to create bills, resume pending
bills, produce revenue reports and browse the product catalog, and a
per-bill menu to add and remove items, park, finalize or cancel the bill.

The CLI never reads the console directly; it is given an input function
and an output function, so the whole session can be driven from a list
of answers in tests. All business rules live in the ledger, the bills and
the catalog; the CLI only collects input, re-prompts on validation
errors and prints results.

Configuration is taken from environment variables:
    POS_CATALOG    product CSV file (default products.csv)
    POS_DB         SQLite file for pending and finalized bills
                   (default pos.db, empty to keep bills in memory only)
    POS_CURRENCY   currency label printed on bills (default Rs.)
    POS_LOG_LEVEL  logging level (default WARNING)
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from db import Database
from errors import NotFoundError, ParseError, StateError, ValidationError
from ledger import LedgerManager
from product import Catalog
from report import REPORT_RECIPIENT, ReportManager
from sales import Bill

InputFunc = Callable[[str], str]
OutputFunc = Callable[[str], None]


def run_cli(
    ledger: LedgerManager,
    reports: ReportManager,
    input_func: InputFunc = input,
    output: OutputFunc = print,
    currency: str = "Rs.",
) -> None:
    """Run the interactive menu until the user chooses to exit."""

    def ask_int(prompt: str, low: int, high: int) -> int:
        while True:
            raw = input_func(prompt).strip()
            try:
                value = int(raw)
            except ValueError:
                output("Invalid input. Please enter a number.")
                continue
            if low <= value <= high:
                return value
            output(f"Please enter a number between {low} and {high}.")

    def show_bill(bill: Bill) -> None:
        output(f"\nCurrent Bill: {bill.bill_id}")
        if not bill.items:
            output("No items in bill yet.")
            return
        output("Items in bill:")
        for index, item in enumerate(bill.items, start=1):
            output(
                f"{index}. {item.product.name} - Qty: {item.quantity} - "
                f"Discount: {item.discount_percentage}% - Net: {currency} {item.net_amount:.2f}"
            )
        output(f"Total: {currency} {bill.total_cost:.2f}")

    def add_item(bill: Bill) -> None:
        code = input_func("Enter item code: ").strip()
        try:
            product = ledger.catalog.lookup(code)
        except NotFoundError as e:
            output(str(e))
            return
        output(f"Found: {product.name} - {currency} {product.unit_price:.2f}")
        while True:
            quantity = input_func("Enter quantity: ")
            discount = input_func("Enter discount percentage (0-75): ")
            try:
                ledger.add_item(bill, code, quantity, discount)
            except ValidationError as e:
                output(f"{e}. Please try again.")
                continue
            output("Item added to bill.")
            return

    def remove_item(bill: Bill) -> None:
        if not bill.items:
            output("No items to remove.")
            return
        number = ask_int("Enter item number to remove: ", 1, bill.item_count)
        removed = ledger.remove_item(bill, number - 1)
        output(f"Item removed from bill: {removed.product.name}")

    def process_bill(bill: Bill) -> None:
        while True:
            show_bill(bill)
            output("\n1. Add item")
            output("2. Remove item")
            output("3. Save as pending")
            output("4. Finalize bill")
            output("5. Cancel bill")
            choice = ask_int("Enter your choice: ", 1, 5)
            try:
                if choice == 1:
                    add_item(bill)
                elif choice == 2:
                    remove_item(bill)
                elif choice == 3:
                    ledger.park(bill)
                    output("Bill saved as pending.")
                    return
                elif choice == 4:
                    ledger.finalize(bill)
                    output("Bill finalized.")
                    output(bill.render(currency))
                    output(f"Bill saved as PDF: {bill.bill_id}.pdf")
                    return
                elif choice == 5:
                    ledger.cancel(bill)
                    output("Bill cancelled.")
                    return
            except StateError as e:
                output(f"Error: {e}")
                return

    def create_bill() -> None:
        output("\n===== CREATE NEW BILL =====")
        cashier = input_func("Enter cashier name: ")
        branch = input_func("Enter branch name: ")
        registered = input_func("Is this a registered customer? (y/n): ").strip().lower()
        customer: Optional[str] = None
        if registered in ("y", "yes"):
            customer = input_func("Enter customer name: ")
        process_bill(ledger.create_bill(cashier, branch, customer))

    def resume_bill() -> None:
        pending = ledger.pending_bills
        if not pending:
            output("No pending bills found.")
            return
        output("\n===== PENDING BILLS =====")
        for index, bill in enumerate(pending, start=1):
            output(f"{index}. {bill.summary()}")
        choice = ask_int("Select bill to resume (0 to cancel): ", 0, len(pending))
        if choice == 0:
            return
        process_bill(ledger.resume(pending[choice - 1].bill_id))

    def revenue_report() -> None:
        output("\n===== REVENUE REPORT =====")
        if not ledger.completed_bills:
            output("No completed bills found for reporting.")
            return
        start_date = input_func("Enter start date (YYYY-MM-DD): ")
        end_date = input_func("Enter end date (YYYY-MM-DD): ")
        try:
            report = reports.sales_summary(start_date, end_date)
        except ParseError as e:
            output(f"Error generating report: {e}")
            return
        output(report.render(currency))
        output(f"\nEmail report sent to {REPORT_RECIPIENT}")

    def list_products() -> None:
        output("\n===== PRODUCT DATABASE =====")
        for p in ledger.catalog.products():
            output(f"{p.item_code} - {p.name} - {currency} {p.unit_price:.2f}")

    while True:
        output("\n===== SUPER-SAVING POS SYSTEM =====")
        output("1. Create New Bill")
        output("2. Resume Pending Bill")
        output("3. Generate Revenue Report")
        output("4. List Products")
        output("5. Exit")
        choice = ask_int("Enter your choice: ", 1, 5)
        if choice == 1:
            create_bill()
        elif choice == 2:
            resume_bill()
        elif choice == 3:
            revenue_report()
        elif choice == 4:
            list_products()
        else:
            output("Thank you for using Super-Saving POS System!")
            break


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("POS_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    catalog_path = os.environ.get("POS_CATALOG", "products.csv")
    db_path = os.environ.get("POS_DB", "pos.db")
    currency = os.environ.get("POS_CURRENCY", "Rs.")

    print("Welcome to Super-Saving POS System")
    catalog = Catalog.load_from_csv(catalog_path)
    print(f"Loaded {len(catalog)} products from database.")
    db: Optional[Database] = None
    if db_path:
        db = Database(db_path)
        db.init_db()
    ledger = LedgerManager(catalog, store=db)
    reports = ReportManager(ledger)
    try:
        run_cli(ledger, reports, currency=currency)
    except (EOFError, KeyboardInterrupt):
        print("\nGoodbye!")
    finally:
        if db is not None:
            db.close()


if __name__ == "__main__":
    main()
