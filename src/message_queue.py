import threading
from queue import Queue, Empty
from typing import Optional

from models import Transaction


class InMemoryQueue:
    """
    Thread-safe FIFO handing transactions from the publisher to one consumer.
    All synchronization is internal - callers never need to lock.
    A positive maxsize bounds the queue and makes publish_message block when full.
    """

    DEFAULT_TIMEOUT = 0.1

    def __init__(self, maxsize: int = 0):
        self._main_queue: Queue[Transaction] = Queue(maxsize=maxsize)
        self._shutdown_event = threading.Event()

    def publish_message(self, message: Transaction) -> None:
        """Add message to main queue. Thread-safe."""
        if self._shutdown_event.is_set():
            raise RuntimeError("queue is shut down")
        self._main_queue.put(message)

    def consume_message(self, timeout: float = DEFAULT_TIMEOUT) -> Optional[Transaction]:
        """
        Get next message from main queue.
        Returns None if queue is empty after timeout.
        Thread-safe.
        """
        try:
            return self._main_queue.get(timeout=timeout)
        except Empty:
            return None

    def is_empty(self) -> bool:
        """Check if main queue is empty."""
        return self._main_queue.empty()

    def size(self) -> int:
        """Return approximate queue size."""
        return self._main_queue.qsize()

    def shutdown(self) -> None:
        """Signal no more messages will be published."""
        self._shutdown_event.set()

    def is_shutdown(self) -> bool:
        """Check if shutdown has been signaled."""
        return self._shutdown_event.is_set()
