"""
NoteLayer SDK - note-based asset transfers on a Goldilocks-field ledger.
"""
from .version import __version__
from .account import AccountId, AccountStorageMode, AccountType
from .asset import FungibleAsset, NoteAssets
from .client import MintResult, NoteClient
from .config import NetworkConfig
from .exceptions import (
    AssetError, ConfirmationError, ConfirmationTimeoutError, LedgerError,
    LedgerRejectedError, NoteConstructionError, NoteLayerError, RpcTransportError,
    StatusRegressionError, SubmissionError, TransactionDiscardedError,
    TransactionNotFoundError, TransactionRequestError,
)
from .felt import Word
from .ledger import HttpLedgerRpc, InMemoryLedger, LedgerRpc, get_ledger
from .note import (
    Note, NoteExecutionHint, NoteExecutionMode, NoteInputs, NoteMetadata,
    NoteRecipient, NoteScript, NoteTag, NoteType,
)
from .notes import build_mint_note, build_p2id_note
from .orchestrator import TransactionOrchestrator
from .rng import DeterministicRng, SecureRng
from .scripts import ScriptRegistry, TransactionScript, default_registry
from .tracker import ConfirmationTracker
from .transaction import (
    SyncSummary, TransactionId, TransactionRequest, TransactionRequestBuilder,
    TransactionStatus,
)

__all__ = [
    "__version__",
    "NoteClient",
    "MintResult",
    "NetworkConfig",
    "AccountId",
    "AccountType",
    "AccountStorageMode",
    "FungibleAsset",
    "NoteAssets",
    "Word",
    "Note",
    "NoteType",
    "NoteTag",
    "NoteExecutionMode",
    "NoteExecutionHint",
    "NoteMetadata",
    "NoteInputs",
    "NoteScript",
    "NoteRecipient",
    "build_p2id_note",
    "build_mint_note",
    "ScriptRegistry",
    "TransactionScript",
    "default_registry",
    "SecureRng",
    "DeterministicRng",
    "TransactionId",
    "TransactionStatus",
    "TransactionRequest",
    "TransactionRequestBuilder",
    "SyncSummary",
    "LedgerRpc",
    "InMemoryLedger",
    "HttpLedgerRpc",
    "get_ledger",
    "TransactionOrchestrator",
    "ConfirmationTracker",
    "NoteLayerError",
    "NoteConstructionError",
    "AssetError",
    "TransactionRequestError",
    "SubmissionError",
    "TransactionNotFoundError",
    "ConfirmationError",
    "TransactionDiscardedError",
    "ConfirmationTimeoutError",
    "StatusRegressionError",
    "LedgerError",
    "RpcTransportError",
    "LedgerRejectedError",
]
