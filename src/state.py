from typing import Dict, Optional, Tuple

from models import ClientAccount, HeldFunds, Transfer

TransactionKey = Tuple[int, int]


class LedgerState:
    """
    Accounts plus the two indices the ledger consults for dispute lookups.
    History and open disputes are keyed by (client_id, transaction_id), so a
    client can only ever reach its own transactions.
    Not thread-safe: each state has exactly one writer.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._history: Dict[TransactionKey, Transfer] = {}
        self._open_disputes: Dict[TransactionKey, HeldFunds] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = self._accounts[client_id] = ClientAccount(client_id=client_id)
        return account

    def has_account(self, client_id: int) -> bool:
        return client_id in self._accounts

    def store_transaction(self, transaction: Transfer) -> None:
        """Append an accepted deposit or withdrawal to history."""
        self._history[(transaction.client_id, transaction.transaction_id)] = transaction

    def get_transaction(self, client_id: int, transaction_id: int) -> Optional[Transfer]:
        return self._history.get((client_id, transaction_id))

    def open_dispute(self, held: HeldFunds) -> None:
        self._open_disputes[(held.client_id, held.transaction_id)] = held

    def get_open_dispute(self, client_id: int, transaction_id: int) -> Optional[HeldFunds]:
        return self._open_disputes.get((client_id, transaction_id))

    def close_dispute(self, client_id: int, transaction_id: int) -> HeldFunds:
        return self._open_disputes.pop((client_id, transaction_id))

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    @property
    def history_size(self) -> int:
        return len(self._history)

    @property
    def open_dispute_count(self) -> int:
        return len(self._open_disputes)
