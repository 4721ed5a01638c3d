"""
NoteClient - Main client for the NoteLayer protocol.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from .account import AccountId
from .asset import FungibleAsset
from .config import NetworkConfig
from .felt import Word
from .ledger import HttpLedgerRpc, LedgerRpc
from .note import Note, NoteTag, NoteType
from .notes import build_mint_note, build_p2id_note
from .orchestrator import TransactionOrchestrator
from .rng import FeltRng, SecureRng
from .scripts import ScriptRegistry, TransactionScript, default_registry
from .tracker import ConfirmationTracker, get_resync_lock
from .transaction import SyncSummary, TransactionId, TransactionRequest


@dataclass
class MintResult:
    """Outcome of minting tokens to an account and consuming the minted note."""
    p2id_note: Note
    mint_note: Note
    mint_transaction_id: TransactionId
    mint_block_num: int
    consume_transaction_id: TransactionId
    consume_block_num: int


class NoteClient:
    """
    Client for the NoteLayer protocol.

    This client handles:
    1. Building P2ID and MINT notes
    2. Submitting transaction requests
    3. Waiting for transactions to be committed

    Every collaborator is passed in explicitly; the client holds no global
    session state.
    """

    network: Optional[str] = None

    def __init__(
        self,
        ledger: LedgerRpc,
        rng: Optional[FeltRng] = None,
        poll_interval: Optional[float] = None,
        max_wait: Optional[float] = None,
        not_found_retries: Optional[int] = None,
        registry: Optional[ScriptRegistry] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the NoteClient

        Args:
            ledger: Ledger RPC implementation
            rng: Randomness source for serial numbers (default: OS CSPRNG)
            poll_interval: Seconds between confirmation polls
            max_wait: Seconds to wait for a confirmation
            not_found_retries: Unknown-id polls tolerated while confirming
            registry: Note script registry (default: well-known scripts)
            logger: Optional logger instance to use for debug/info logging
        """
        self.ledger = ledger
        self.rng = rng or SecureRng()
        self.registry = registry or default_registry()
        self.logger = logger or logging.getLogger(__name__)
        self.orchestrator = TransactionOrchestrator(ledger, logger=self.logger)
        self.tracker = ConfirmationTracker(
            ledger,
            poll_interval=poll_interval,
            max_wait=max_wait,
            not_found_retries=not_found_retries,
            logger=self.logger,
        )

    @classmethod
    def from_network(
        cls,
        network: str,
        rpc_url: Optional[str] = None,
        timeout: Optional[float] = None,
        **kwargs,
    ) -> "NoteClient":
        """
        Create a client for a packaged network definition.

        Args:
            network: Network name from networks.json
            rpc_url: Optional RPC URL overriding the network's
            timeout: HTTP timeout in seconds
            **kwargs: Passed to the constructor

        Returns:
            Configured client

        Raises:
            ValueError: If the network is unknown
        """
        url = NetworkConfig.get_rpc_url(network, rpc_url)
        for key, value in NetworkConfig.get_poll_settings(network).items():
            kwargs.setdefault(key, value)
        ledger = HttpLedgerRpc(url, timeout=timeout, logger=kwargs.get("logger"))
        client = cls(ledger, **kwargs)
        client.network = network
        return client

    def explorer_url(self, transaction_id: TransactionId) -> Optional[str]:
        """Block explorer link for a transaction, when the client was built for a known network."""
        if self.network is None:
            return None
        return NetworkConfig.get_explorer_tx_url(self.network, transaction_id.to_hex())

    def sync(self) -> SyncSummary:
        """Resynchronize with the ledger."""
        with get_resync_lock(self.ledger):
            summary = self.ledger.resync()
        self.tracker.last_sync = summary
        self.logger.info(f"Latest block: {summary.block_num}")
        return summary

    def build_p2id_note(
        self,
        sender: AccountId,
        target: AccountId,
        assets: Sequence[FungibleAsset],
        note_type: NoteType = NoteType.PRIVATE,
        aux: int = 0,
        serial_num: Optional[Union[Word, str]] = None,
    ) -> Note:
        """Build a P2ID note, drawing the serial number from the client rng if not given."""
        if serial_num is None:
            serial_num = self.rng.draw_word()
        return build_p2id_note(sender, target, assets, note_type, aux, serial_num, registry=self.registry)

    def build_mint_note(
        self,
        faucet_id: AccountId,
        owner_id: AccountId,
        recipient_digest: Union[Word, str],
        amount: int,
        output_tag: Optional[Union[NoteTag, int]] = None,
        aux: int = 0,
        output_note_aux: int = 0,
    ) -> Note:
        """Build a MINT note with a serial number drawn from the client rng."""
        if output_tag is None:
            output_tag = NoteTag.for_local_use_case(0, 0)
        return build_mint_note(
            faucet_id, owner_id, recipient_digest, output_tag, amount, aux, output_note_aux,
            self.rng, registry=self.registry,
        )

    def submit(self, account_id: AccountId, request: TransactionRequest) -> TransactionId:
        return self.orchestrator.submit(account_id, request)

    def await_commitment(self, transaction_id: TransactionId, **kwargs) -> int:
        return self.tracker.await_commitment(transaction_id, **kwargs)

    def submit_and_wait(
        self, account_id: AccountId, request: TransactionRequest, **kwargs
    ) -> Tuple[TransactionId, int]:
        """
        Submit a request and wait for it to be committed.

        Returns:
            Tuple of (transaction id, block number)
        """
        transaction_id = self.submit(account_id, request)
        return transaction_id, self.await_commitment(transaction_id, **kwargs)

    def deploy(self, account_id: AccountId, script: TransactionScript, **wait_kwargs) -> Tuple[TransactionId, int]:
        """
        Deploy an account by running a custom transaction script against it.

        Returns:
            Tuple of (transaction id, block number)
        """
        transaction_id = self.orchestrator.submit_custom_script(account_id, script)
        return transaction_id, self.await_commitment(transaction_id, **wait_kwargs)

    def mint_and_consume(
        self,
        faucet_id: AccountId,
        owner_id: AccountId,
        target_id: AccountId,
        amount: int,
        aux: int = 0,
        note_type: NoteType = NoteType.PRIVATE,
        output_tag: Optional[Union[NoteTag, int]] = None,
        **wait_kwargs,
    ) -> MintResult:
        """
        Mint tokens from a network faucet into an account.

        Steps:
        1. Build the P2ID note the faucet should create for ``target_id``
        2. Build a MINT note coupled to it by recipient digest
        3. Submit the MINT note from the faucet and wait for commitment
        4. Consume the P2ID note from ``target_id`` and wait for commitment

        Args:
            faucet_id: Network fungible faucet
            owner_id: Faucet owner, sender of the MINT note
            target_id: Account receiving the tokens
            amount: Amount to mint
            aux: Auxiliary element used for both notes
            note_type: Type of the P2ID note
            output_tag: Tag of the note created by the faucet
            **wait_kwargs: Passed to ``await_commitment``

        Returns:
            MintResult with both notes, transaction ids and block numbers

        Raises:
            NoteConstructionError: If a note cannot be built
            SubmissionError: If the ledger rejects a transaction
            ConfirmationError: If a transaction is discarded or times out
        """
        asset = FungibleAsset.new(faucet_id, amount)
        p2id_note = self.build_p2id_note(faucet_id, target_id, [asset], note_type, aux)
        self.logger.info(f"P2ID output note commitment: {p2id_note.commitment.to_hex()}")

        mint_note = self.build_mint_note(
            faucet_id, owner_id, p2id_note.recipient.digest, amount,
            output_tag=output_tag, aux=aux, output_note_aux=aux,
        )
        self.logger.info(f"MINT note commitment: {mint_note.commitment.to_hex()}")

        mint_tx = self.orchestrator.submit_issuance(faucet_id, mint_note)
        mint_block = self.await_commitment(mint_tx, **wait_kwargs)

        consume_tx = self.orchestrator.submit_consumption(target_id, p2id_note)
        consume_block = self.await_commitment(consume_tx, **wait_kwargs)

        return MintResult(
            p2id_note=p2id_note,
            mint_note=mint_note,
            mint_transaction_id=mint_tx,
            mint_block_num=mint_block,
            consume_transaction_id=consume_tx,
            consume_block_num=consume_block,
        )

    def close(self) -> None:
        self.ledger.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
