"""
Exceptions for the NoteLayer SDK.
"""
from typing import Optional


class NoteLayerError(Exception):
    """Base exception for all NoteLayer SDK errors."""
    pass


class NoteConstructionError(NoteLayerError):
    """Raised when a note cannot be built from the given inputs."""
    pass


class AssetError(NoteConstructionError):
    """Raised when an asset or an asset vault is invalid."""
    pass


class TransactionRequestError(NoteLayerError):
    """Raised when a transaction request is empty or inconsistent."""
    pass


class SubmissionError(NoteLayerError):
    """Raised when the ledger refuses a transaction at submit time."""

    def __init__(self, message: str, account_id: Optional[str] = None):
        self.account_id = account_id
        super().__init__(message)


class TransactionNotFoundError(NoteLayerError):
    """Raised when the ledger does not know a transaction id."""

    def __init__(self, message: str, transaction_id: Optional[str] = None):
        self.transaction_id = transaction_id
        super().__init__(message)


class ConfirmationError(NoteLayerError):
    """Base exception for confirmation failures."""

    def __init__(self, message: str, transaction_id: Optional[str] = None):
        self.transaction_id = transaction_id
        super().__init__(message)


class TransactionDiscardedError(ConfirmationError):
    """Raised when the ledger discarded a transaction. Never retried."""

    def __init__(self, cause: str, transaction_id: Optional[str] = None):
        self.cause = cause
        super().__init__(f"Transaction discarded: {cause}", transaction_id)


class ConfirmationTimeoutError(ConfirmationError):
    """Raised when the local wait budget expires before a terminal status."""

    def __init__(self, transaction_id: Optional[str] = None, elapsed: float = 0.0):
        self.elapsed = elapsed
        super().__init__(
            f"Transaction {transaction_id} not confirmed after {elapsed:.2f}s",
            transaction_id,
        )


class StatusRegressionError(ConfirmationError):
    """Raised when the ledger reports a transition out of a terminal status."""
    pass


class LedgerError(NoteLayerError):
    """Base exception for errors surfaced by a ledger RPC collaborator."""
    pass


class RpcTransportError(LedgerError):
    """Raised when the ledger cannot be reached or answers with a server error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class LedgerRejectedError(LedgerError):
    """Raised when the ledger rejects a request as invalid."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
