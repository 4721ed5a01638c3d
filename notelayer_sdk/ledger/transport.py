"""
Ledger RPC interface.

This module defines the narrow contract the protocol layer needs from a
ledger node, independent of the transport used to reach it.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..account import AccountId
from ..transaction import SyncSummary, TransactionId, TransactionRequest, TransactionStatus

logger = logging.getLogger(__name__)


class LedgerRpc(ABC):
    """
    Abstract base class for ledger RPC implementations.

    Implementations must raise ``RpcTransportError`` for network failures
    and ``LedgerRejectedError`` for requests the ledger refuses. Neither may
    be reported as a discarded or unknown transaction.
    """

    @abstractmethod
    def resync(self) -> SyncSummary:
        """
        Bring the local view of the ledger up to date.

        Returns:
            Summary with the latest block number

        Raises:
            RpcTransportError: If the ledger cannot be reached
        """
        pass

    @abstractmethod
    def submit(self, account_id: AccountId, request: TransactionRequest) -> TransactionId:
        """
        Submit a transaction request on behalf of an account.

        Args:
            account_id: Account executing the transaction
            request: Transaction request

        Returns:
            Identifier of the submitted transaction

        Raises:
            LedgerRejectedError: If the ledger refuses the request
            RpcTransportError: If the ledger cannot be reached
        """
        pass

    @abstractmethod
    def lookup(self, transaction_id: TransactionId) -> Optional[TransactionStatus]:
        """
        Look up a transaction in the synchronized view.

        Returns:
            The transaction status, or None if the id is unknown

        Raises:
            RpcTransportError: If the ledger cannot be reached
        """
        pass

    def close(self) -> None:
        """Close any open connections or resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def get_ledger(rpc_url: Optional[str] = None, **kwargs) -> LedgerRpc:
    """
    Get a ledger implementation.

    Args:
        rpc_url: URL of a ledger node; when omitted an in-memory ledger is
            returned
        **kwargs: Passed to the implementation constructor

    Returns:
        Ledger implementation
    """
    if rpc_url:
        from .http_transport import HttpLedgerRpc
        logger.info(f"Using HTTP ledger at {rpc_url}")
        return HttpLedgerRpc(rpc_url, **kwargs)

    from .memory_transport import InMemoryLedger
    logger.info("Using in-memory ledger")
    return InMemoryLedger(**kwargs)
