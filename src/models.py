import threading
from dataclasses import dataclass
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    ROUND_HALF_EVEN,
)
from enum import Enum
from typing import ClassVar, Optional, Union

from errors import InsufficientFunds, InsufficientHeld

AMOUNT_PLACES = 4
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_PLACES)
ZERO = Decimal(0).quantize(AMOUNT_QUANTUM)

# Largest single amount accepted at the input boundary
MAX_AMOUNT = Decimal("999999999999999.9999")

# Balance arithmetic. Even 2**32 transactions of MAX_AMOUNT stay under 29
# significant digits, so every add/subtract is exact; Inexact traps regardless.
MONEY_CONTEXT = Context(
    prec=38,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, Inexact, Overflow, DivisionByZero],
)

# Input rounding to AMOUNT_PLACES is expected, so only invalid results trap
ROUNDING_CONTEXT = Context(prec=38, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation, Overflow])


def to_amount(value: Union[str, int, Decimal]) -> Decimal:
    """
    Convert a value to a fixed-precision amount (4 decimal places, banker's rounding).
    Raises ValueError for anything that is not a finite number in 0..MAX_AMOUNT.
    """
    try:
        amount = Decimal(value.strip() if isinstance(value, str) else value)
    except InvalidOperation:
        raise ValueError(f"not a decimal amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"amount must be finite, got {value!r}")
    if amount < 0:
        raise ValueError(f"amount must not be negative, got {value!r}")
    if amount > MAX_AMOUNT:
        raise ValueError(f"amount must not exceed {MAX_AMOUNT}, got {value!r}")
    return amount.quantize(AMOUNT_QUANTUM, context=ROUNDING_CONTEXT)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


@dataclass(frozen=True)
class _TransactionBase:
    client_id: int
    transaction_id: int

    transaction_type: ClassVar[TransactionType]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client_id}, tx={self.transaction_id})"


@dataclass(frozen=True, repr=False)
class Deposit(_TransactionBase):
    amount: Decimal

    transaction_type: ClassVar[TransactionType] = TransactionType.DEPOSIT

    def __repr__(self) -> str:
        return f"Deposit(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True, repr=False)
class Withdrawal(_TransactionBase):
    amount: Decimal

    transaction_type: ClassVar[TransactionType] = TransactionType.WITHDRAWAL

    def __repr__(self) -> str:
        return f"Withdrawal(client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True, repr=False)
class Dispute(_TransactionBase):
    transaction_type: ClassVar[TransactionType] = TransactionType.DISPUTE


@dataclass(frozen=True, repr=False)
class Resolve(_TransactionBase):
    transaction_type: ClassVar[TransactionType] = TransactionType.RESOLVE


@dataclass(frozen=True, repr=False)
class Chargeback(_TransactionBase):
    transaction_type: ClassVar[TransactionType] = TransactionType.CHARGEBACK


Transaction = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]
Transfer = Union[Deposit, Withdrawal]

TRANSACTION_CLASSES = {
    cls.transaction_type: cls for cls in (Deposit, Withdrawal, Dispute, Resolve, Chargeback)
}


@dataclass(frozen=True)
class HeldFunds:
    """An open dispute: the amount frozen on behalf of one prior transfer."""
    client_id: int
    transaction_id: int
    amount: Decimal


@dataclass
class ClientAccount:
    """
    Balances for one client.

    Every operation checks before it mutates, so a raised error leaves the
    account untouched. `total` is derived, which keeps total == available + held.
    Arithmetic runs in MONEY_CONTEXT, which is exact for any bounded amounts.
    """

    client_id: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return MONEY_CONTEXT.add(self.available, self.held)

    def deposit(self, amount: Decimal) -> None:
        self.available = MONEY_CONTEXT.add(self.available, amount)

    def withdrawal(self, amount: Decimal, transaction_id: Optional[int] = None) -> None:
        if amount > self.available:
            raise InsufficientFunds(
                self.client_id, transaction_id, f"withdrawal of {amount} exceeds available {self.available}"
            )
        self.available = MONEY_CONTEXT.subtract(self.available, amount)

    def dispute(self, amount: Decimal, transaction_id: Optional[int] = None) -> None:
        if amount > self.available:
            raise InsufficientFunds(
                self.client_id, transaction_id, f"dispute of {amount} exceeds available {self.available}"
            )
        self.available = MONEY_CONTEXT.subtract(self.available, amount)
        self.held = MONEY_CONTEXT.add(self.held, amount)

    def resolve(self, amount: Decimal, transaction_id: Optional[int] = None) -> None:
        if amount > self.held:
            raise InsufficientHeld(
                self.client_id, transaction_id, f"resolve of {amount} exceeds held {self.held}"
            )
        self.held = MONEY_CONTEXT.subtract(self.held, amount)
        self.available = MONEY_CONTEXT.add(self.available, amount)

    def chargeback(self, amount: Decimal, transaction_id: Optional[int] = None) -> None:
        if amount > self.held:
            raise InsufficientHeld(
                self.client_id, transaction_id, f"chargeback of {amount} exceeds held {self.held}"
            )
        self.held = MONEY_CONTEXT.subtract(self.held, amount)
        self.locked = True


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.processed = 0
        self.failed = 0
        self.malformed = 0

    def record_success(self):
        with self._lock:
            self.processed += 1

    def record_failure(self):
        with self._lock:
            self.failed += 1

    def record_malformed(self):
        with self._lock:
            self.malformed += 1

    def __str__(self) -> str:
        return f"Processed: {self.processed}, Failed: {self.failed}, Malformed: {self.malformed}"
