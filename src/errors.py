from typing import Optional


class PaymentsError(Exception):
    """Base exception for everything raised while replaying a batch."""
    pass


class LedgerError(PaymentsError):
    """
    A single transaction was rejected by the ledger.
    State is left exactly as it was before the transaction was attempted.
    """

    reason = "transaction rejected"

    def __init__(self, client_id: int, transaction_id: Optional[int] = None, detail: str = ""):
        self.client_id = client_id
        self.transaction_id = transaction_id
        self.detail = detail
        super().__init__(self._describe())

    def _describe(self) -> str:
        target = f"client {self.client_id}"
        if self.transaction_id is not None:
            target += f", tx {self.transaction_id}"
        message = f"{self.reason} ({target})"
        if self.detail:
            message += f": {self.detail}"
        return message


class InsufficientFunds(LedgerError):
    """Raised when a withdrawal or dispute needs more than the available funds."""
    reason = "insufficient available funds"


class InsufficientHeld(LedgerError):
    """Raised when a resolve or chargeback needs more than the held funds."""
    reason = "insufficient held funds"


class AccountLocked(LedgerError):
    """Raised for any transaction against an account frozen by a chargeback."""
    reason = "account is locked"


class TransactionNotFound(LedgerError):
    """Raised when a dispute references a transaction this client never made."""
    reason = "transaction not found"


class DisputeNotFound(LedgerError):
    """Raised when a resolve or chargeback references a transaction not under dispute."""
    reason = "no open dispute"


class AlreadyDisputed(LedgerError):
    """Raised when a dispute references a transaction that is already held."""
    reason = "transaction already disputed"


class DuplicateTransaction(LedgerError):
    """Raised when a deposit or withdrawal reuses a transaction id already in history."""
    reason = "duplicate transaction id"


class MalformedRecord(PaymentsError):
    """Raised at the input boundary for a row that cannot become a transaction."""

    def __init__(self, row, detail: str):
        self.row = row
        self.detail = detail
        super().__init__(f"malformed record {row!r}: {detail}")
