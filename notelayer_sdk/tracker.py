"""
ConfirmationTracker - follows a submitted transaction to a terminal status.

Every poll resynchronizes with the ledger before looking the transaction
up, so a lookup never runs against a stale view. Resync advances state
shared by everyone using the same ledger object, so resync calls on one
ledger are serialized through a shared lock.
"""
import os
import time
import logging
import threading
import weakref
from typing import Callable, Optional

from cachetools import LRUCache

from ._rate_limited_log import rate_limited_log
from .exceptions import (
    ConfirmationTimeoutError, StatusRegressionError, TransactionDiscardedError,
    TransactionNotFoundError,
)
from .ledger import LedgerRpc
from .transaction import SyncSummary, TransactionId, TransactionStatus

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_MAX_WAIT = 120.0
DEFAULT_NOT_FOUND_RETRIES = 5
# statuses remembered per tracker for the monotonicity check
OBSERVED_STATUS_LIMIT = 1024

# Module-level resync lock registry with thread safety
_resync_locks: "weakref.WeakKeyDictionary[LedgerRpc, threading.RLock]" = weakref.WeakKeyDictionary()
_registry_lock = threading.Lock()


def get_resync_lock(ledger: LedgerRpc) -> threading.RLock:
    """
    Get the lock serializing resync calls on a ledger object.

    Args:
        ledger: Ledger shared by one or more trackers

    Returns:
        The same RLock for every caller using this ledger
    """
    with _registry_lock:
        lock = _resync_locks.get(ledger)
        if lock is None:
            lock = threading.RLock()
            _resync_locks[ledger] = lock
        return lock


class ConfirmationTracker:
    """
    Observes transaction statuses through periodic resynchronization.

    The tracker never changes a transaction; it only reads the ledger. It
    does check that what it reads respects the status state machine:
    ``pending`` may become ``committed`` or ``discarded`` and those never
    change again.
    """

    def __init__(
        self,
        ledger: LedgerRpc,
        poll_interval: Optional[float] = None,
        max_wait: Optional[float] = None,
        not_found_retries: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the tracker

        Args:
            ledger: Ledger RPC to poll
            poll_interval: Seconds between polls (default: NOTELAYER_POLL_INTERVAL or 1.0)
            max_wait: Seconds before giving up (default: NOTELAYER_MAX_WAIT or 120)
            not_found_retries: Consecutive polls an unknown id is tolerated
                before failing (default: NOTELAYER_NOT_FOUND_RETRIES or 5)
            clock: Monotonic clock, replaceable in tests
            sleep: Sleep function, replaceable in tests
            logger: Optional logger instance to use for debug/info logging
        """
        self.ledger = ledger
        self.poll_interval = poll_interval if poll_interval is not None else float(
            os.environ.get("NOTELAYER_POLL_INTERVAL", DEFAULT_POLL_INTERVAL))
        self.max_wait = max_wait if max_wait is not None else float(
            os.environ.get("NOTELAYER_MAX_WAIT", DEFAULT_MAX_WAIT))
        self.not_found_retries = not_found_retries if not_found_retries is not None else int(
            os.environ.get("NOTELAYER_NOT_FOUND_RETRIES", DEFAULT_NOT_FOUND_RETRIES))
        self.logger = logger or logging.getLogger(__name__)
        self.last_sync: Optional[SyncSummary] = None
        self._clock = clock or time.monotonic
        self._sleep = sleep
        self._resync_lock = get_resync_lock(ledger)
        self._observed: "LRUCache[TransactionId, TransactionStatus]" = LRUCache(maxsize=OBSERVED_STATUS_LIMIT)

    def poll_status(self, transaction_id: TransactionId) -> Optional[TransactionStatus]:
        """
        Resync with the ledger, then look the transaction up.

        Returns:
            Current status, or None if the ledger does not know the id

        Raises:
            StatusRegressionError: If the ledger reports a transition out of
                a terminal status
            RpcTransportError: If the ledger cannot be reached
        """
        with self._resync_lock:
            self.last_sync = self.ledger.resync()
            status = self.ledger.lookup(transaction_id)

        previous = self._observed.get(transaction_id)
        if previous is not None and previous.is_terminal:
            if status is None or not previous.can_transition_to(status):
                raise StatusRegressionError(
                    f"Transaction {transaction_id} moved from {previous} to {status or 'unknown'}",
                    transaction_id.to_hex(),
                )
        if status is not None:
            self._observed[transaction_id] = status
        return status

    def await_commitment(
        self,
        transaction_id: TransactionId,
        poll_interval: Optional[float] = None,
        max_wait: Optional[float] = None,
        not_found_retries: Optional[int] = None,
        backoff_factor: float = 1.0,
        max_interval: Optional[float] = None,
        max_polls: Optional[int] = None,
    ) -> int:
        """
        Block until the transaction is committed.

        Args:
            transaction_id: Transaction to wait for
            poll_interval: Initial delay between polls in seconds
            max_wait: Wall-clock budget in seconds; 0 returns immediately
                without touching the ledger
            not_found_retries: Consecutive unknown-id polls tolerated
            backoff_factor: Multiplier applied to the delay after each poll
            max_interval: Upper bound for the delay between polls
            max_polls: Optional cap on the number of polls

        Returns:
            Block number the transaction was committed in

        Raises:
            TransactionDiscardedError: If the ledger discarded the transaction
            TransactionNotFoundError: If the id stays unknown for too long
            ConfirmationTimeoutError: If the budget expires first
            RpcTransportError: If the ledger cannot be reached
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        budget = self.max_wait if max_wait is None else max_wait
        retries = self.not_found_retries if not_found_retries is None else not_found_retries
        if interval < 0 or budget < 0 or retries < 0:
            raise ValueError("poll_interval, max_wait and not_found_retries must be non-negative")
        if backoff_factor < 1.0:
            raise ValueError(f"backoff_factor must be at least 1.0, got {backoff_factor}")

        tx_hex = transaction_id.to_hex()
        start = self._clock()
        deadline = start + budget
        misses = 0
        polls = 0

        while True:
            now = self._clock()
            if now >= deadline or (max_polls is not None and polls >= max_polls):
                self.logger.warning(f"Gave up waiting for {tx_hex[:18]}... after {now - start:.2f}s")
                raise ConfirmationTimeoutError(tx_hex, now - start)

            status = self.poll_status(transaction_id)
            polls += 1

            if status is None:
                misses += 1
                if misses > retries:
                    self.logger.error(f"Transaction {tx_hex[:18]}... not found after {misses} polls")
                    raise TransactionNotFoundError(
                        f"Transaction {tx_hex} not found after {misses} polls", tx_hex
                    )
                self.logger.debug(f"Transaction {tx_hex[:18]}... not found yet ({misses}/{retries})")
            elif status.is_committed:
                self._observed.pop(transaction_id, None)
                self.logger.info(f"Transaction {tx_hex[:18]}... committed in block {status.block_num}")
                return status.block_num
            elif status.is_discarded:
                self._observed.pop(transaction_id, None)
                self.logger.warning(f"Transaction {tx_hex[:18]}... discarded: {status.cause}")
                raise TransactionDiscardedError(status.cause, tx_hex)
            else:
                misses = 0
                rate_limited_log(
                    f"Transaction {tx_hex[:18]}... still pending",
                    level="info",
                    interval=30,
                    logger_instance=self.logger,
                )

            remaining = deadline - self._clock()
            delay = min(interval, max(remaining, 0.0))
            if max_interval is not None:
                delay = min(delay, max_interval)
            (self._sleep or time.sleep)(delay)
            interval *= backoff_factor
