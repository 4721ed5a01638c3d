"""
Construction of P2ID transfer notes and MINT issuance notes.

Every function here is pure: the only source of randomness is the rng a
caller passes in, and nothing touches the network.
"""
import logging
from typing import Optional, Sequence, Union

from pydantic import ValidationError

from .account import AccountId
from .asset import MAX_AMOUNT, FungibleAsset, NoteAssets
from .exceptions import AssetError, NoteConstructionError
from .felt import Word, felt
from .note import (
    Note, NoteExecutionHint, NoteInputs, NoteMetadata, NoteRecipient, NoteTag, NoteType,
)
from .rng import FeltRng
from .scripts import MINT, P2ID, ScriptRegistry, default_registry

logger = logging.getLogger(__name__)

MINT_INPUTS_LENGTH = 8


def _as_word(value: Union[Word, str], what: str) -> Word:
    if isinstance(value, Word):
        return value
    try:
        return Word.from_hex(value)
    except ValueError as e:
        raise NoteConstructionError(f"Malformed {what}: {e}") from e


def build_p2id_note(
    sender: AccountId,
    target: AccountId,
    assets: Sequence[FungibleAsset],
    note_type: NoteType,
    aux: int,
    serial_num: Union[Word, str],
    *,
    registry: Optional[ScriptRegistry] = None,
) -> Note:
    """
    Build a pay-to-id note that only ``target`` can consume.

    Args:
        sender: Account creating the note
        target: Account allowed to consume the note
        assets: Assets carried by the note (same-faucet entries are merged)
        note_type: Public or private note
        aux: Auxiliary metadata element
        serial_num: Note serial number; draw it from a secure rng for
            private notes, fix it only when reproducibility is required
        registry: Script registry (defaults to the well-known scripts)

    Returns:
        The note

    Raises:
        NoteConstructionError: If assets are empty or invalid, or metadata
            fields cannot be encoded
    """
    if not assets:
        raise NoteConstructionError("A P2ID note must carry at least one asset")

    serial = _as_word(serial_num, "serial number")
    script = (registry or default_registry()).get(P2ID)

    try:
        vault = NoteAssets.new(assets)
        inputs = NoteInputs(values=(target.suffix, target.prefix))
        recipient = NoteRecipient(serial_num=serial, script=script, inputs=inputs)
        tag = NoteTag.from_account_id(target)
        metadata = NoteMetadata(
            sender=sender,
            note_type=note_type,
            tag=tag,
            execution_hint=NoteExecutionHint.always(),
            aux=aux,
        )
    except AssetError as e:
        raise NoteConstructionError(f"Invalid P2ID vault: {e}") from e
    except (ValidationError, ValueError) as e:
        raise NoteConstructionError(f"Invalid P2ID note fields: {e}") from e

    note = Note(assets=vault, metadata=metadata, recipient=recipient)
    logger.debug(f"Built P2ID note {note.id.to_hex()[:18]}... for {target.to_hex()[:12]}...")
    return note


def build_mint_note(
    faucet_id: AccountId,
    owner_id: AccountId,
    recipient_digest: Union[Word, str],
    output_tag: Union[NoteTag, int],
    amount: int,
    aux: int,
    output_note_aux: int,
    rng: FeltRng,
    *,
    registry: Optional[ScriptRegistry] = None,
) -> Note:
    """
    Build a MINT note asking a network faucet to issue ``amount`` tokens.

    The faucet answers by creating an output note whose recipient is
    ``recipient_digest``. The digest is the only link to the target note:
    if it does not match the digest of the intended P2ID note, the minted
    tokens end up in a note nobody can consume.

    Args:
        faucet_id: Network fungible faucet that issues the tokens
        owner_id: Owner of the faucet, sender of the MINT note
        recipient_digest: Recipient digest of the note to fund
        output_tag: Tag of the note the faucet creates
        amount: Amount to issue
        aux: Auxiliary element of the MINT note itself
        output_note_aux: Auxiliary element of the created note
        rng: Source of the MINT note serial number
        registry: Script registry (defaults to the well-known scripts)

    Returns:
        The MINT note

    Raises:
        NoteConstructionError: If the digest is malformed, the amount is out
            of range, or a metadata field cannot be encoded
    """
    digest = _as_word(recipient_digest, "recipient digest")
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= MAX_AMOUNT:
        raise NoteConstructionError(f"Mint amount must be in 1..{MAX_AMOUNT}, got {amount}")

    script = (registry or default_registry()).get(MINT)
    hint = NoteExecutionHint.always()

    try:
        tag_value = output_tag.value if isinstance(output_tag, NoteTag) else NoteTag(value=output_tag).value
        inputs = NoteInputs(values=(
            *digest.elements,
            hint.to_felt(),
            felt(output_note_aux),
            tag_value,
            amount,
        ))
        metadata = NoteMetadata(
            sender=owner_id,
            note_type=NoteType.PUBLIC,
            tag=NoteTag.from_account_id(faucet_id),
            execution_hint=hint,
            aux=aux,
        )
    except (ValidationError, ValueError) as e:
        raise NoteConstructionError(f"Invalid MINT note fields: {e}") from e

    recipient = NoteRecipient(serial_num=rng.draw_word(), script=script, inputs=inputs)
    note = Note(assets=NoteAssets(), metadata=metadata, recipient=recipient)
    logger.debug(
        f"Built MINT note {note.id.to_hex()[:18]}... of {amount} for recipient {digest.to_hex()[:18]}..."
    )
    return note


def mint_target_digest(mint_note: Note) -> Word:
    """
    Return the recipient digest a MINT note is coupled to.

    Raises:
        NoteConstructionError: If the note inputs do not have the MINT layout
    """
    values = mint_note.recipient.inputs.values
    if len(values) != MINT_INPUTS_LENGTH:
        raise NoteConstructionError(
            f"MINT note takes {MINT_INPUTS_LENGTH} inputs, got {len(values)}"
        )
    return Word(elements=values[:4])


def mint_output_tag(mint_note: Note) -> NoteTag:
    mint_target_digest(mint_note)
    return NoteTag(value=mint_note.recipient.inputs.values[6])


def mint_output_aux(mint_note: Note) -> int:
    mint_target_digest(mint_note)
    return mint_note.recipient.inputs.values[5]


def mint_amount(mint_note: Note) -> int:
    mint_target_digest(mint_note)
    return mint_note.recipient.inputs.values[7]
