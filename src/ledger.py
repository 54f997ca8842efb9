import logging
from typing import Dict, Optional

from errors import (
    AccountLocked,
    AlreadyDisputed,
    DisputeNotFound,
    DuplicateTransaction,
    TransactionNotFound,
)
from models import (
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    HeldFunds,
    Resolve,
    Transaction,
    Withdrawal,
)
from state import LedgerState

logger = logging.getLogger(__name__)


class Ledger:
    """
    Routes transactions to client accounts.

    Deposits and withdrawals go straight to the account and are recorded in
    history. Disputes recover the amount from history; resolves and chargebacks
    recover it from the open disputes. Indices are only updated after the
    account operation succeeded, so any raised LedgerError leaves the ledger
    as it was.

    Not safe to call concurrently for the same client; callers serialize.
    """

    def __init__(self, state: Optional[LedgerState] = None):
        self._state = state if state is not None else LedgerState()

    @property
    def state(self) -> LedgerState:
        return self._state

    def process(self, transaction: Transaction) -> None:
        """
        Apply a single transaction.

        Raises:
            AccountLocked: the account was frozen by an earlier chargeback
            DuplicateTransaction: deposit/withdrawal id already in history
            InsufficientFunds: withdrawal or dispute exceeds available funds
            InsufficientHeld: resolve or chargeback exceeds held funds
            TransactionNotFound: dispute of a transaction this client never made
            AlreadyDisputed: dispute of a transaction already held
            DisputeNotFound: resolve/chargeback of a transaction not under dispute
        """
        account = self._state.get_or_create_account(transaction.client_id)

        if account.locked:
            raise AccountLocked(transaction.client_id, transaction.transaction_id)

        match transaction:
            case Deposit(amount=amount):
                self._check_new_transfer(transaction)
                account.deposit(amount)
                self._state.store_transaction(transaction)
            case Withdrawal(amount=amount):
                self._check_new_transfer(transaction)
                account.withdrawal(amount, transaction.transaction_id)
                self._state.store_transaction(transaction)
            case Dispute():
                self._handle_dispute(account, transaction)
            case Resolve():
                self._handle_resolve(account, transaction)
            case Chargeback():
                self._handle_chargeback(account, transaction)
            case _:
                raise TypeError(f"unsupported transaction: {transaction!r}")

        logger.debug(f"Applied {transaction!r}")

    def accounts(self) -> Dict[int, ClientAccount]:
        return self._state.get_all_accounts()

    def _check_new_transfer(self, transaction: Transaction) -> None:
        if self._state.get_transaction(transaction.client_id, transaction.transaction_id) is not None:
            raise DuplicateTransaction(transaction.client_id, transaction.transaction_id)

    def _handle_dispute(self, account: ClientAccount, transaction: Dispute) -> None:
        original = self._state.get_transaction(transaction.client_id, transaction.transaction_id)
        if original is None:
            raise TransactionNotFound(transaction.client_id, transaction.transaction_id)

        if self._state.get_open_dispute(transaction.client_id, transaction.transaction_id) is not None:
            raise AlreadyDisputed(transaction.client_id, transaction.transaction_id)

        account.dispute(original.amount, transaction.transaction_id)
        self._state.open_dispute(
            HeldFunds(
                client_id=transaction.client_id,
                transaction_id=transaction.transaction_id,
                amount=original.amount,
            )
        )

    def _handle_resolve(self, account: ClientAccount, transaction: Resolve) -> None:
        held = self._state.get_open_dispute(transaction.client_id, transaction.transaction_id)
        if held is None:
            raise DisputeNotFound(transaction.client_id, transaction.transaction_id)

        account.resolve(held.amount, transaction.transaction_id)
        self._state.close_dispute(transaction.client_id, transaction.transaction_id)

    def _handle_chargeback(self, account: ClientAccount, transaction: Chargeback) -> None:
        held = self._state.get_open_dispute(transaction.client_id, transaction.transaction_id)
        if held is None:
            raise DisputeNotFound(transaction.client_id, transaction.transaction_id)

        account.chargeback(held.amount, transaction.transaction_id)
        self._state.close_dispute(transaction.client_id, transaction.transaction_id)
