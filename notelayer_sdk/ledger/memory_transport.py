"""
In-memory ledger.

This module simulates a ledger node for tests, demos and local
development. Submitted transactions stay pending until enough blocks have
been produced by ``resync`` calls, and are then committed or discarded by
applying their note effects to the simulated account vaults.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from ..account import AccountId, AccountType
from ..asset import FungibleAsset, NoteAssets
from ..exceptions import AssetError, LedgerRejectedError, NoteConstructionError, RpcTransportError
from ..felt import Word, hash_elements, merge
from ..note import Note, NoteTag, p2id_target
from ..notes import mint_amount, mint_target_digest
from ..scripts import MINT, P2ID, ScriptRegistry, default_registry
from ..transaction import SyncSummary, TransactionId, TransactionRequest, TransactionStatus
from .transport import LedgerRpc

logger = logging.getLogger(__name__)


class _Discard(Exception):
    """Internal signal: applying a transaction failed with the given cause."""
    pass


@dataclass
class _Faucet:
    owner: AccountId
    max_supply: int
    issued: int = 0


@dataclass
class _NoteRecord:
    """A note created on the simulated chain."""
    assets: NoteAssets
    note: Optional[Note] = None
    block_num: int = 0


@dataclass
class _PendingTransaction:
    transaction_id: TransactionId
    account_id: AccountId
    request: TransactionRequest
    submitted_at: int


@dataclass
class _State:
    vaults: Dict[AccountId, Dict[AccountId, int]] = field(default_factory=dict)
    notes: Dict[Word, _NoteRecord] = field(default_factory=dict)
    nullifiers: Set[Word] = field(default_factory=set)
    faucets: Dict[AccountId, _Faucet] = field(default_factory=dict)
    deployed: Set[AccountId] = field(default_factory=set)

    def copy(self) -> "_State":
        return _State(
            vaults={account: dict(vault) for account, vault in self.vaults.items()},
            notes=dict(self.notes),
            nullifiers=set(self.nullifiers),
            faucets={faucet: _Faucet(f.owner, f.max_supply, f.issued) for faucet, f in self.faucets.items()},
            deployed=set(self.deployed),
        )


class InMemoryLedger(LedgerRpc):
    """
    A simulated ledger node.

    Each ``resync`` produces one block. A transaction submitted at block
    ``n`` is resolved in the first block at or after ``n + commit_latency``.
    """

    def __init__(
        self,
        commit_latency: int = 1,
        registry: Optional[ScriptRegistry] = None,
        genesis_block: int = 0,
    ):
        """
        Initialize the in-memory ledger.

        Args:
            commit_latency: Number of blocks between submission and resolution
            registry: Script registry used to recognize note scripts
            genesis_block: Block number of the initial chain tip
        """
        if commit_latency < 1:
            raise ValueError("commit_latency must be at least 1")
        self.commit_latency = commit_latency
        self.registry = registry or default_registry()
        self.block_num = genesis_block
        self.offline = False
        self.submit_calls = 0
        self.resync_calls = 0
        self._state = _State()
        self._pending: List[_PendingTransaction] = []
        self._statuses: Dict[TransactionId, TransactionStatus] = {}
        self._counter = 0
        self._lock = threading.RLock()

    # -- setup helpers -------------------------------------------------

    def register_faucet(self, faucet_id: AccountId, owner_id: AccountId, max_supply: int) -> None:
        """
        Deploy a network fungible faucet owned by ``owner_id``.

        Raises:
            ValueError: If the id is not a fungible faucet id
        """
        if faucet_id.account_type != AccountType.FUNGIBLE_FAUCET:
            raise ValueError(f"Account {faucet_id.to_hex()} is not a fungible faucet")
        with self._lock:
            self._state.faucets[faucet_id] = _Faucet(owner=owner_id, max_supply=max_supply)
            self._state.deployed.add(faucet_id)
        logger.debug(f"Registered faucet {faucet_id.to_hex()[:12]}... owned by {owner_id.to_hex()[:12]}...")

    def fund(self, account_id: AccountId, asset: FungibleAsset) -> None:
        """Credit an account directly, outside of any transaction."""
        with self._lock:
            vault = self._state.vaults.setdefault(account_id, {})
            vault[asset.faucet_id] = vault.get(asset.faucet_id, 0) + asset.amount

    # -- queries -------------------------------------------------------

    def balance(self, account_id: AccountId, faucet_id: AccountId) -> int:
        with self._lock:
            return self._state.vaults.get(account_id, {}).get(faucet_id, 0)

    def vault(self, account_id: AccountId) -> Dict[AccountId, int]:
        with self._lock:
            return dict(self._state.vaults.get(account_id, {}))

    def has_note(self, note_id: Word) -> bool:
        with self._lock:
            return note_id in self._state.notes

    def is_consumed(self, nullifier: Word) -> bool:
        with self._lock:
            return nullifier in self._state.nullifiers

    def is_deployed(self, account_id: AccountId) -> bool:
        with self._lock:
            return account_id in self._state.deployed

    # -- LedgerRpc -----------------------------------------------------

    def _check_online(self) -> None:
        if self.offline:
            raise RpcTransportError("In-memory ledger is offline")

    def resync(self) -> SyncSummary:
        with self._lock:
            self._check_online()
            self.resync_calls += 1
            self.block_num += 1

            committed: List[TransactionId] = []
            discarded: List[TransactionId] = []
            still_pending: List[_PendingTransaction] = []
            for pending in self._pending:
                if pending.submitted_at + self.commit_latency > self.block_num:
                    still_pending.append(pending)
                    continue
                try:
                    self._state = self._apply(pending)
                except _Discard as e:
                    self._statuses[pending.transaction_id] = TransactionStatus.discarded(str(e))
                    discarded.append(pending.transaction_id)
                    logger.info(f"Transaction {pending.transaction_id.to_hex()[:18]}... discarded: {e}")
                else:
                    self._statuses[pending.transaction_id] = TransactionStatus.committed(self.block_num)
                    committed.append(pending.transaction_id)
                    logger.info(
                        f"Transaction {pending.transaction_id.to_hex()[:18]}... committed in block {self.block_num}"
                    )
            self._pending = still_pending

            return SyncSummary(
                block_num=self.block_num,
                committed_transactions=tuple(committed),
                discarded_transactions=tuple(discarded),
            )

    def submit(self, account_id: AccountId, request: TransactionRequest) -> TransactionId:
        with self._lock:
            self._check_online()
            self.submit_calls += 1
            if not isinstance(request, TransactionRequest):
                raise LedgerRejectedError(f"Expected a TransactionRequest, got {type(request).__name__}")
            self._validate(account_id, request)

            self._counter += 1
            digest = hash_elements(
                [account_id.prefix, account_id.suffix, self._counter, self.block_num]
                + request.commitment.to_list()
            )
            transaction_id = TransactionId.from_word(digest)
            self._pending.append(_PendingTransaction(
                transaction_id=transaction_id,
                account_id=account_id,
                request=request,
                submitted_at=self.block_num,
            ))
            self._statuses[transaction_id] = TransactionStatus.pending()
            logger.debug(f"Accepted transaction {transaction_id.to_hex()[:18]}... ({request.shape})")
            return transaction_id

    def lookup(self, transaction_id: TransactionId) -> Optional[TransactionStatus]:
        with self._lock:
            self._check_online()
            return self._statuses.get(transaction_id)

    # -- execution -----------------------------------------------------

    def _script_name(self, note: Note) -> Optional[str]:
        return self.registry.name_of(note.recipient.script.root)

    def _validate(self, account_id: AccountId, request: TransactionRequest) -> None:
        """Checks that would make transaction execution fail before proving."""
        for note, _ in request.unauthenticated_input_notes:
            script = self._script_name(note)
            if script == MINT:
                raise LedgerRejectedError("MINT notes can only be consumed by their network faucet")
            if script != P2ID:
                raise LedgerRejectedError(f"Unsupported input note script {note.recipient.script.name}")
            if p2id_target(note) != account_id:
                raise LedgerRejectedError(
                    f"Note {note.id.to_hex()[:18]}... cannot be consumed by {account_id.to_hex()}"
                )
        for note in request.own_output_notes:
            if self._script_name(note) == MINT and note.metadata.tag != NoteTag.from_account_id(account_id):
                raise LedgerRejectedError("MINT note tag does not target the issuing faucet")

    def _apply(self, pending: _PendingTransaction) -> _State:
        state = self._state.copy()
        account_id = pending.account_id
        request = pending.request

        for note, _ in request.unauthenticated_input_notes:
            self._consume(state, account_id, note.id, note)
        for note_id, _ in request.authenticated_input_notes:
            record = state.notes.get(note_id)
            if record is None or record.note is None:
                raise _Discard(f"authenticated note {note_id.to_hex()} is not known to the ledger")
            if p2id_target(record.note) != account_id:
                raise _Discard(f"note {note_id.to_hex()} is not addressed to {account_id.to_hex()}")
            self._consume(state, account_id, note_id, record.note)

        for note in request.own_output_notes:
            if self._script_name(note) == MINT:
                self._mint(state, account_id, note)
            else:
                self._debit(state, account_id, note.assets)
                state.notes[note.id] = _NoteRecord(assets=note.assets, note=note, block_num=self.block_num)

        if request.custom_script is not None:
            state.deployed.add(account_id)
        return state

    def _consume(self, state: _State, account_id: AccountId, note_id: Word, note: Note) -> None:
        if note.nullifier in state.nullifiers:
            raise _Discard(f"note {note_id.to_hex()} was already consumed")
        if note_id not in state.notes:
            raise _Discard(f"input note {note_id.to_hex()} not found on chain")
        if note.metadata.execution_hint.can_be_consumed(self.block_num) is False:
            raise _Discard(f"note {note_id.to_hex()} is not consumable before its hint block")
        state.nullifiers.add(note.nullifier)
        vault = state.vaults.setdefault(account_id, {})
        for asset in note.assets.assets:
            vault[asset.faucet_id] = vault.get(asset.faucet_id, 0) + asset.amount

    def _debit(self, state: _State, account_id: AccountId, assets: NoteAssets) -> None:
        vault = state.vaults.setdefault(account_id, {})
        for asset in assets.assets:
            available = vault.get(asset.faucet_id, 0)
            if available < asset.amount:
                raise _Discard(
                    f"insufficient balance of {asset.faucet_id.to_hex()}: {available} < {asset.amount}"
                )
            vault[asset.faucet_id] = available - asset.amount

    def _mint(self, state: _State, faucet_id: AccountId, mint_note: Note) -> None:
        faucet = state.faucets.get(faucet_id)
        if faucet is None:
            raise _Discard(f"account {faucet_id.to_hex()} is not a deployed network faucet")
        if mint_note.metadata.sender != faucet.owner:
            raise _Discard("MINT note sender is not the faucet owner")
        try:
            digest = mint_target_digest(mint_note)
            amount = mint_amount(mint_note)
            assets = NoteAssets.new([FungibleAsset.new(faucet_id, amount)])
        except (NoteConstructionError, AssetError) as e:
            raise _Discard(f"malformed MINT note: {e}")
        if faucet.issued + amount > faucet.max_supply:
            raise _Discard(
                f"minting {amount} exceeds max supply {faucet.max_supply} (issued {faucet.issued})"
            )
        faucet.issued += amount
        # the faucet only learns the recipient digest, never the full note
        output_id = merge(digest, assets.commitment)
        state.notes[output_id] = _NoteRecord(assets=assets, block_num=self.block_num)
        logger.debug(f"Faucet {faucet_id.to_hex()[:12]}... created note {output_id.to_hex()[:18]}...")
