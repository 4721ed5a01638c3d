"""
Tests for the in-memory ledger.
"""
import pytest

from notelayer_sdk.asset import FungibleAsset
from notelayer_sdk.exceptions import LedgerRejectedError, RpcTransportError
from notelayer_sdk.ledger import HttpLedgerRpc, InMemoryLedger, get_ledger
from notelayer_sdk.note import NoteExecutionHint, NoteTag, NoteType
from notelayer_sdk.notes import build_mint_note, build_p2id_note
from notelayer_sdk.rng import DeterministicRng
from notelayer_sdk.scripts import TransactionScript
from notelayer_sdk.transaction import TransactionId, TransactionRequestBuilder, TransactionStatus
from conftest import TEST_MAX_SUPPLY, TEST_SERIAL_HEX


def _mint_request(faucet_id, owner_id, target_note, amount, rng=None):
    mint = build_mint_note(
        faucet_id, owner_id, target_note.recipient.digest, NoteTag.for_local_use_case(0, 0),
        amount, 0, 0, rng or DeterministicRng(amount),
    )
    return TransactionRequestBuilder().own_output_notes([mint]).build()


def _consume_request(note):
    return TransactionRequestBuilder().unauthenticated_input_notes([(note, None)]).build()


@pytest.fixture
def p2id(faucet_id, account_id):
    return build_p2id_note(
        faucet_id, account_id, [FungibleAsset.new(faucet_id, 50)], NoteType.PRIVATE, 27, TEST_SERIAL_HEX
    )


class TestLedgerLifecycle:
    """Tests for block production and transaction resolution."""

    def test_resync_produces_blocks(self):
        ledger = InMemoryLedger(genesis_block=10)
        assert ledger.resync().block_num == 11
        assert ledger.resync().block_num == 12
        assert ledger.resync_calls == 2

    def test_unknown_transaction(self):
        assert InMemoryLedger().lookup(TransactionId.from_hex("0x" + "00" * 32)) is None

    def test_pending_until_latency(self, faucet_id, owner_id, p2id):
        ledger = InMemoryLedger(commit_latency=2)
        ledger.register_faucet(faucet_id, owner_id, TEST_MAX_SUPPLY)
        tx = ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, p2id, 50))
        assert ledger.lookup(tx) == TransactionStatus.pending()

        assert ledger.resync().committed_transactions == ()
        assert ledger.lookup(tx).is_pending

        summary = ledger.resync()
        assert summary.committed_transactions == (tx,)
        assert ledger.lookup(tx) == TransactionStatus.committed(2)

    def test_invalid_latency(self):
        with pytest.raises(ValueError):
            InMemoryLedger(commit_latency=0)

    def test_transaction_ids_are_unique(self, ledger, faucet_id, owner_id, p2id):
        request = _mint_request(faucet_id, owner_id, p2id, 50)
        first = ledger.submit(faucet_id, request)
        second = ledger.submit(faucet_id, request)
        assert first != second
        assert ledger.submit_calls == 2

    def test_offline(self, ledger, faucet_id, owner_id, p2id):
        ledger.offline = True
        with pytest.raises(RpcTransportError):
            ledger.resync()
        with pytest.raises(RpcTransportError):
            ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, p2id, 50))
        with pytest.raises(RpcTransportError):
            ledger.lookup(TransactionId.from_hex("0x" + "00" * 32))


class TestMintAndConsume:
    """Tests for issuance through a network faucet and P2ID consumption."""

    def test_mint_then_consume(self, ledger, faucet_id, owner_id, account_id, p2id):
        mint_tx = ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, p2id, 50))
        ledger.resync()
        assert ledger.lookup(mint_tx).is_committed
        assert ledger.has_note(p2id.id)

        consume_tx = ledger.submit(account_id, _consume_request(p2id))
        ledger.resync()
        assert ledger.lookup(consume_tx) == TransactionStatus.committed(2)
        assert ledger.balance(account_id, faucet_id) == 50
        assert ledger.vault(account_id) == {faucet_id: 50}
        assert ledger.is_consumed(p2id.nullifier)

    def test_double_spend_is_discarded(self, ledger, faucet_id, owner_id, account_id, p2id):
        ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, p2id, 50))
        ledger.resync()
        first = ledger.submit(account_id, _consume_request(p2id))
        second = ledger.submit(account_id, _consume_request(p2id))
        summary = ledger.resync()
        assert summary.committed_transactions == (first,)
        assert summary.discarded_transactions == (second,)
        assert "already consumed" in ledger.lookup(second).cause
        assert ledger.balance(account_id, faucet_id) == 50

    def test_mismatched_digest_leaves_tokens_stranded(self, ledger, faucet_id, owner_id, account_id, p2id):
        other = build_p2id_note(
            faucet_id, account_id, [FungibleAsset.new(faucet_id, 50)], NoteType.PRIVATE, 27,
            DeterministicRng(99).draw_word(),
        )
        ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, other, 50))
        ledger.resync()

        consume_tx = ledger.submit(account_id, _consume_request(p2id))
        ledger.resync()
        status = ledger.lookup(consume_tx)
        assert status.is_discarded
        assert "not found on chain" in status.cause
        assert ledger.balance(account_id, faucet_id) == 0

    def test_amount_mismatch_leaves_tokens_stranded(self, ledger, faucet_id, owner_id, account_id, p2id):
        # the minted note id commits to the minted amount, not the P2ID vault
        ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, p2id, 49))
        ledger.resync()
        assert not ledger.has_note(p2id.id)

    def test_max_supply(self, faucet_id, owner_id, p2id):
        ledger = InMemoryLedger()
        ledger.register_faucet(faucet_id, owner_id, 40)
        tx = ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, p2id, 50))
        ledger.resync()
        assert "max supply" in ledger.lookup(tx).cause

    def test_wrong_owner(self, ledger, faucet_id, account_id, p2id):
        tx = ledger.submit(faucet_id, _mint_request(faucet_id, account_id, p2id, 50))
        ledger.resync()
        assert "not the faucet owner" in ledger.lookup(tx).cause

    def test_unregistered_faucet(self, faucet_id, owner_id, p2id):
        ledger = InMemoryLedger()
        tx = ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, p2id, 50))
        ledger.resync()
        assert "not a deployed network faucet" in ledger.lookup(tx).cause

    def test_discard_leaves_state_untouched(self, faucet_id, owner_id, account_id, p2id):
        ledger = InMemoryLedger()
        ledger.register_faucet(faucet_id, owner_id, 60)
        # second mint in the same block exceeds supply and must not leave partial effects
        ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, p2id, 50))
        other = build_p2id_note(
            faucet_id, account_id, [FungibleAsset.new(faucet_id, 20)], NoteType.PRIVATE, 0,
            DeterministicRng(5).draw_word(),
        )
        tx = ledger.submit(faucet_id, _mint_request(faucet_id, owner_id, other, 20))
        ledger.resync()
        assert ledger.lookup(tx).is_discarded
        assert not ledger.has_note(other.id)
        assert ledger.has_note(p2id.id)


class TestSubmitValidation:
    """Tests for requests the ledger rejects synchronously."""

    def test_consume_note_addressed_elsewhere(self, ledger, other_account_id, p2id):
        with pytest.raises(LedgerRejectedError, match="cannot be consumed"):
            ledger.submit(other_account_id, _consume_request(p2id))

    def test_consume_mint_note(self, ledger, faucet_id, owner_id, account_id, p2id):
        mint = _mint_request(faucet_id, owner_id, p2id, 50).own_output_notes[0]
        with pytest.raises(LedgerRejectedError, match="MINT notes"):
            ledger.submit(account_id, _consume_request(mint))

    def test_mint_from_other_account(self, ledger, faucet_id, owner_id, account_id, p2id):
        with pytest.raises(LedgerRejectedError, match="does not target"):
            ledger.submit(account_id, _mint_request(faucet_id, owner_id, p2id, 50))

    def test_rejects_non_request(self, ledger, account_id):
        with pytest.raises(LedgerRejectedError, match="Expected a TransactionRequest"):
            ledger.submit(account_id, {"notes": []})


class TestTransfers:
    """Tests for P2ID notes created from an account vault."""

    def test_transfer_between_accounts(self, ledger, faucet_id, account_id, other_account_id):
        ledger.fund(account_id, FungibleAsset.new(faucet_id, 80))
        note = build_p2id_note(
            account_id, other_account_id, [FungibleAsset.new(faucet_id, 30)], NoteType.PRIVATE, 0,
            TEST_SERIAL_HEX,
        )
        ledger.submit(account_id, TransactionRequestBuilder().own_output_notes([note]).build())
        ledger.resync()
        assert ledger.balance(account_id, faucet_id) == 50

        ledger.submit(other_account_id, _consume_request(note))
        ledger.resync()
        assert ledger.balance(other_account_id, faucet_id) == 30

    def test_insufficient_balance(self, ledger, faucet_id, account_id, other_account_id):
        note = build_p2id_note(
            account_id, other_account_id, [FungibleAsset.new(faucet_id, 30)], NoteType.PRIVATE, 0,
            TEST_SERIAL_HEX,
        )
        tx = ledger.submit(account_id, TransactionRequestBuilder().own_output_notes([note]).build())
        ledger.resync()
        assert "insufficient balance" in ledger.lookup(tx).cause

    def test_authenticated_input(self, ledger, faucet_id, account_id, other_account_id):
        ledger.fund(account_id, FungibleAsset.new(faucet_id, 10))
        note = build_p2id_note(
            account_id, other_account_id, [FungibleAsset.new(faucet_id, 10)], NoteType.PRIVATE, 0,
            TEST_SERIAL_HEX,
        )
        ledger.submit(account_id, TransactionRequestBuilder().own_output_notes([note]).build())
        ledger.resync()

        request = TransactionRequestBuilder().authenticated_input_notes([(note.id, None)]).build()
        tx = ledger.submit(other_account_id, request)
        ledger.resync()
        assert ledger.lookup(tx).is_committed
        assert ledger.balance(other_account_id, faucet_id) == 10

    def test_execution_hint_after_block(self, ledger, faucet_id, account_id, other_account_id):
        ledger.fund(account_id, FungibleAsset.new(faucet_id, 10))
        note = build_p2id_note(
            account_id, other_account_id, [FungibleAsset.new(faucet_id, 10)], NoteType.PRIVATE, 0,
            TEST_SERIAL_HEX,
        )
        late = note.model_copy(update={
            "metadata": note.metadata.model_copy(update={"execution_hint": NoteExecutionHint.after_block(50)})
        })
        ledger.submit(account_id, TransactionRequestBuilder().own_output_notes([late]).build())
        ledger.resync()
        tx = ledger.submit(other_account_id, _consume_request(late))
        ledger.resync()
        assert "hint block" in ledger.lookup(tx).cause


class TestDeploy:
    """Tests for custom transaction scripts."""

    def test_custom_script_deploys_account(self, ledger, account_id):
        script = TransactionScript.from_source("begin end")
        tx = ledger.submit(account_id, TransactionRequestBuilder().custom_script(script).build())
        assert not ledger.is_deployed(account_id)
        ledger.resync()
        assert ledger.lookup(tx).is_committed
        assert ledger.is_deployed(account_id)

    def test_registered_faucet_is_deployed(self, ledger, faucet_id):
        assert ledger.is_deployed(faucet_id)

    def test_register_non_faucet(self, account_id, owner_id):
        with pytest.raises(ValueError, match="not a fungible faucet"):
            InMemoryLedger().register_faucet(account_id, owner_id, 10)


class TestGetLedger:
    """Tests for the ledger provider."""

    def test_default_is_in_memory(self):
        assert isinstance(get_ledger(), InMemoryLedger)
        assert get_ledger(commit_latency=3).commit_latency == 3

    def test_url_gives_http_ledger(self):
        ledger = get_ledger("https://rpc.example.com")
        assert isinstance(ledger, HttpLedgerRpc)
        ledger.close()

    def test_context_manager(self):
        with get_ledger() as ledger:
            assert ledger.resync().block_num == 1
