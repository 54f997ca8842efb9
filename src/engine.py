import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List

from csv_io import read_transactions
from errors import LedgerError
from ledger import Ledger
from message_queue import InMemoryQueue
from models import ClientAccount, ProcessingStats, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rejection:
    transaction: Transaction
    error: LedgerError


class ReplayEngine:
    """
    Replays a batch of transactions with a publisher-consumer pattern.

    Transactions are partitioned by client id into one queue per worker, and
    each worker owns its own Ledger. Accounts never cross shards, so every
    client's transactions are applied by one thread in input order.
    Each call to process/process_file replays a fresh batch.
    """

    def __init__(self, workers: int = 1, queue_size: int = 0):
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if queue_size < 0:
            raise ValueError(f"queue_size must not be negative, got {queue_size}")
        self._workers = workers
        self._queue_size = queue_size
        self._stats = ProcessingStats()
        self._rejections: List[Rejection] = []
        self._rejections_lock = threading.Lock()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def rejections(self) -> List[Rejection]:
        with self._rejections_lock:
            return list(self._rejections)

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        self._reset()
        with open(filepath, "r", newline="") as f:
            transactions = read_transactions(f, on_malformed=lambda _: self._stats.record_malformed())
            return self._run(transactions)

    def process(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Process already-parsed transactions and return final account states."""
        self._reset()
        return self._run(transactions)

    def _reset(self) -> None:
        self._stats = ProcessingStats()
        with self._rejections_lock:
            self._rejections = []

    def _run(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        queues = [InMemoryQueue(maxsize=self._queue_size) for _ in range(self._workers)]
        ledgers = [Ledger() for _ in range(self._workers)]
        publisher_errors: List[BaseException] = []

        logger.info(f"Starting replay with {self._workers} worker(s)")

        publisher_thread = threading.Thread(
            target=self._publish_transactions,
            args=(transactions, queues, publisher_errors),
        )
        publisher_thread.start()

        consumer_threads = []
        for queue, ledger in zip(queues, ledgers):
            consumer_thread = threading.Thread(target=self._consume_transactions, args=(queue, ledger))
            consumer_thread.start()
            consumer_threads.append(consumer_thread)

        publisher_thread.join()
        for queue in queues:
            queue.shutdown()
        for consumer_thread in consumer_threads:
            consumer_thread.join()

        if publisher_errors:
            raise publisher_errors[0]

        logger.info(f"Replay complete. {self._stats}")

        accounts: Dict[int, ClientAccount] = {}
        for ledger in ledgers:
            accounts.update(ledger.accounts())
        return accounts

    def _publish_transactions(
        self,
        transactions: Iterable[Transaction],
        queues: List[InMemoryQueue],
        errors: List[BaseException],
    ) -> None:
        """Route each transaction to the queue of the shard owning its client."""
        try:
            for transaction in transactions:
                queues[transaction.client_id % len(queues)].publish_message(transaction)
        except Exception as e:
            logger.error(f"Publisher stopped: {e}")
            errors.append(e)

    def _consume_transactions(self, queue: InMemoryQueue, ledger: Ledger) -> None:
        """Consumer loop: pull from queue, apply to this shard's ledger, report failures."""
        while True:
            transaction = queue.consume_message()
            if transaction is None:
                if queue.is_shutdown() and queue.is_empty():
                    break
                continue

            try:
                ledger.process(transaction)
            except LedgerError as e:
                self._record_rejection(transaction, e)
            else:
                self._stats.record_success()

    def _record_rejection(self, transaction: Transaction, error: LedgerError) -> None:
        self._stats.record_failure()
        with self._rejections_lock:
            self._rejections.append(Rejection(transaction=transaction, error=error))
        logger.warning(f"Rejected {transaction!r}: {error}")
