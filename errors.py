"""
errors.py
Exception hierarchy shared by the POS modules. Every error raised by the
catalog, the bills and the ledger derives from `POSError` so the console
can report any of them without catching unrelated exceptions.

Validation and lookup errors are expected during normal use (a cashier
mistypes an item code or a quantity) and are recovered by re-prompting.
State errors mean the caller asked for a transition the bill does not
allow; the operation is rejected but the session carries on.
"""


class POSError(Exception):
    """Base class for all POS errors."""


class NotFoundError(POSError):
    """An item code or pending bill id that does not exist."""


class ValidationError(POSError):
    """A value entered for a bill is outside its allowed domain."""


class InvalidQuantity(ValidationError):
    pass


class InvalidDiscount(ValidationError):
    pass


class IndexOutOfRange(ValidationError):
    pass


class StateError(POSError):
    """The bill's lifecycle state does not allow the requested operation."""


class BillImmutable(StateError):
    """The bill is finalized or cancelled and can no longer be edited."""


class BillNotActive(StateError):
    """The bill is parked and must be resumed before editing."""


class IllegalTransition(StateError):
    pass


class ParseError(POSError):
    """A date or catalog row could not be parsed."""
