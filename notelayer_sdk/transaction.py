"""
Transaction requests, identifiers and statuses.
"""
import re
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .exceptions import TransactionRequestError
from .felt import Word, flatten, hash_elements
from .note import Note
from .scripts import TransactionScript

_TX_ID_RE = re.compile(r"^0x[0-9a-f]{64}$")


class TransactionId(BaseModel):
    """Opaque, fixed-width identifier returned when a transaction is submitted."""
    model_config = ConfigDict(frozen=True)

    value: str

    @field_validator("value")
    @classmethod
    def _check_hex(cls, value: str):
        normalized = value.lower()
        if not normalized.startswith("0x"):
            normalized = "0x" + normalized
        if not _TX_ID_RE.match(normalized):
            raise ValueError(f"Transaction id must be 0x followed by 64 hex characters, got: {value}")
        return normalized

    @classmethod
    def from_hex(cls, value: str) -> "TransactionId":
        return cls(value=value)

    @classmethod
    def from_word(cls, word: Word) -> "TransactionId":
        return cls(value=word.to_hex())

    def to_hex(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


class TransactionStatus(BaseModel):
    """
    Lifecycle state of a submitted transaction.

    ``pending`` may move to ``committed`` or ``discarded``; both of those
    are terminal and never change again.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["pending", "committed", "discarded"]
    block_num: Optional[int] = None
    cause: Optional[str] = None

    @model_validator(mode="after")
    def _check_variant(self):
        if self.kind == "committed" and (self.block_num is None or self.block_num < 0):
            raise ValueError("Committed status requires a block number")
        if self.kind != "committed" and self.block_num is not None:
            raise ValueError(f"Status {self.kind} carries no block number")
        if self.kind == "discarded" and not self.cause:
            raise ValueError("Discarded status requires a cause")
        if self.kind != "discarded" and self.cause is not None:
            raise ValueError(f"Status {self.kind} carries no cause")
        return self

    @classmethod
    def pending(cls) -> "TransactionStatus":
        return cls(kind="pending")

    @classmethod
    def committed(cls, block_num: int) -> "TransactionStatus":
        return cls(kind="committed", block_num=block_num)

    @classmethod
    def discarded(cls, cause: str) -> "TransactionStatus":
        return cls(kind="discarded", cause=cause)

    @property
    def is_pending(self) -> bool:
        return self.kind == "pending"

    @property
    def is_committed(self) -> bool:
        return self.kind == "committed"

    @property
    def is_discarded(self) -> bool:
        return self.kind == "discarded"

    @property
    def is_terminal(self) -> bool:
        return self.kind != "pending"

    def can_transition_to(self, other: "TransactionStatus") -> bool:
        """Whether ``other`` is a legal next observation after this status."""
        if self.is_pending:
            return True
        return other == self

    def __str__(self) -> str:
        if self.is_committed:
            return f"Committed(block {self.block_num})"
        if self.is_discarded:
            return f"Discarded({self.cause})"
        return "Pending"


class SyncSummary(BaseModel):
    """Result of resynchronizing with the ledger."""
    model_config = ConfigDict(frozen=True)

    block_num: int
    committed_transactions: Tuple[TransactionId, ...] = ()
    discarded_transactions: Tuple[TransactionId, ...] = ()


class TransactionRequest(BaseModel):
    """
    A batch of intended ledger effects.

    At least one of output notes, input notes and custom script must be
    present. Built through ``TransactionRequestBuilder``.
    """
    model_config = ConfigDict(frozen=True)

    own_output_notes: Tuple[Note, ...] = ()
    unauthenticated_input_notes: Tuple[Tuple[Note, Optional[Word]], ...] = ()
    authenticated_input_notes: Tuple[Tuple[Word, Optional[Word]], ...] = ()
    custom_script: Optional[TransactionScript] = None

    @model_validator(mode="after")
    def _check_request(self):
        if not (self.own_output_notes or self.unauthenticated_input_notes
                or self.authenticated_input_notes or self.custom_script):
            raise ValueError(
                "A transaction request needs output notes, input notes or a custom script"
            )
        input_ids = [note.id for note, _ in self.unauthenticated_input_notes]
        input_ids += [note_id for note_id, _ in self.authenticated_input_notes]
        if len(set(input_ids)) != len(input_ids):
            raise ValueError("A note is consumed more than once in the request")
        output_ids = [note.id for note in self.own_output_notes]
        if len(set(output_ids)) != len(output_ids):
            raise ValueError("A note is created more than once in the request")
        return self

    @property
    def input_note_ids(self) -> List[Word]:
        ids = [note.id for note, _ in self.unauthenticated_input_notes]
        return ids + [note_id for note_id, _ in self.authenticated_input_notes]

    @property
    def shape(self) -> str:
        """Short description of the request, used in logs."""
        parts = []
        if self.own_output_notes:
            parts.append(f"{len(self.own_output_notes)} output")
        if self.unauthenticated_input_notes:
            parts.append(f"{len(self.unauthenticated_input_notes)} unauthenticated input")
        if self.authenticated_input_notes:
            parts.append(f"{len(self.authenticated_input_notes)} authenticated input")
        if self.custom_script:
            parts.append("custom script")
        return ", ".join(parts)

    @property
    def commitment(self) -> Word:
        """Digest over every effect of the request."""
        elements = flatten([note.commitment for note in self.own_output_notes])
        elements += flatten(self.input_note_ids)
        if self.custom_script:
            elements += self.custom_script.root.to_list()
        return hash_elements(elements)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "own_output_notes": [note.to_wire() for note in self.own_output_notes],
            "unauthenticated_input_notes": [
                {"note": note.to_wire(), "args": args.to_hex() if args else None}
                for note, args in self.unauthenticated_input_notes
            ],
            "authenticated_input_notes": [
                {"note_id": note_id.to_hex(), "args": args.to_hex() if args else None}
                for note_id, args in self.authenticated_input_notes
            ],
            "custom_script": self.custom_script.source if self.custom_script else None,
        }


class TransactionRequestBuilder:
    """Accumulates the parts of a transaction request."""

    def __init__(self):
        self._own_output_notes: List[Note] = []
        self._unauthenticated_input_notes: List[Tuple[Note, Optional[Word]]] = []
        self._authenticated_input_notes: List[Tuple[Word, Optional[Word]]] = []
        self._custom_script: Optional[TransactionScript] = None

    def own_output_notes(self, notes: Sequence[Note]) -> "TransactionRequestBuilder":
        self._own_output_notes.extend(notes)
        return self

    def unauthenticated_input_notes(
        self, notes: Sequence[Tuple[Note, Optional[Word]]]
    ) -> "TransactionRequestBuilder":
        """
        Consume notes the client holds no inclusion proof for.

        The consuming account proves its right to the note through the note
        script, so no local authentication data is needed.
        """
        self._unauthenticated_input_notes.extend(notes)
        return self

    def authenticated_input_notes(
        self, notes: Sequence[Tuple[Word, Optional[Word]]]
    ) -> "TransactionRequestBuilder":
        self._authenticated_input_notes.extend(notes)
        return self

    def custom_script(self, script: TransactionScript) -> "TransactionRequestBuilder":
        self._custom_script = script
        return self

    def build(self) -> TransactionRequest:
        """
        Build the request.

        Raises:
            TransactionRequestError: If the request is empty or consumes or
                creates a note twice
        """
        try:
            return TransactionRequest(
                own_output_notes=tuple(self._own_output_notes),
                unauthenticated_input_notes=tuple(self._unauthenticated_input_notes),
                authenticated_input_notes=tuple(self._authenticated_input_notes),
                custom_script=self._custom_script,
            )
        except ValidationError as e:
            raise TransactionRequestError(f"Invalid transaction request: {e}") from e
