"""
Note data types and their commitments.

A note is a self-contained transfer unit made of an asset vault, metadata
and a recipient. Its id and commitment are deterministic functions of those
three parts, so two notes built from identical fields are interchangeable.
"""
from enum import IntEnum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .account import AccountId, AccountStorageMode
from .asset import NoteAssets
from .felt import ZERO_WORD, Word, felt, hash_elements, merge

MAX_INPUTS_PER_NOTE = 128
MAX_LOCAL_TAG_LENGTH = 30
DEFAULT_LOCAL_TAG_LENGTH = 14
MAX_USE_CASE_ID = 2**14 - 1
U32_MAX = 2**32 - 1


class NoteType(IntEnum):
    """Whether the note details are published on chain."""
    PUBLIC = 1
    PRIVATE = 2


class NoteExecutionMode(IntEnum):
    NETWORK = 0
    LOCAL = 1


class NoteTag(BaseModel):
    """
    32-bit routing hint used for note delivery and filtering.

    The two most significant bits select the execution target:
    ``00`` network account, ``01`` network public use case,
    ``10`` local public use case, ``11`` local any.
    """
    model_config = ConfigDict(frozen=True)

    NETWORK_ACCOUNT: ClassVar[int] = 0x0000_0000
    NETWORK_PUBLIC_USECASE: ClassVar[int] = 0x4000_0000
    LOCAL_PUBLIC_USECASE: ClassVar[int] = 0x8000_0000
    LOCAL_ANY: ClassVar[int] = 0xC000_0000

    value: int

    @field_validator("value")
    @classmethod
    def _check_u32(cls, value: int):
        if not 0 <= value <= U32_MAX:
            raise ValueError(f"Note tag must fit in 32 bits, got {value}")
        return value

    @classmethod
    def from_account_id(cls, account_id: AccountId,
                        tag_len: int = DEFAULT_LOCAL_TAG_LENGTH) -> "NoteTag":
        """
        Derive the tag that routes a note to an account.

        Network accounts get their 30 most significant prefix bits; other
        accounts get a local tag keeping the top ``tag_len`` bits.
        """
        high_bits = account_id.prefix >> 34
        if account_id.storage_mode == AccountStorageMode.NETWORK:
            return cls(value=high_bits)
        if not 0 <= tag_len <= MAX_LOCAL_TAG_LENGTH:
            raise ValueError(f"Local tag length must be at most {MAX_LOCAL_TAG_LENGTH}, got {tag_len}")
        mask = (U32_MAX << (MAX_LOCAL_TAG_LENGTH - tag_len)) & U32_MAX
        return cls(value=cls.LOCAL_ANY | (high_bits & mask))

    @classmethod
    def for_local_use_case(cls, use_case_id: int, payload: int) -> "NoteTag":
        cls._check_use_case(use_case_id, payload)
        return cls(value=cls.LOCAL_ANY | (use_case_id << 16) | payload)

    @classmethod
    def for_public_use_case(cls, use_case_id: int, payload: int,
                            execution: NoteExecutionMode = NoteExecutionMode.LOCAL) -> "NoteTag":
        cls._check_use_case(use_case_id, payload)
        execution_bits = (cls.LOCAL_PUBLIC_USECASE if execution == NoteExecutionMode.LOCAL
                          else cls.NETWORK_PUBLIC_USECASE)
        return cls(value=execution_bits | (use_case_id << 16) | payload)

    @staticmethod
    def _check_use_case(use_case_id: int, payload: int) -> None:
        if not 0 <= use_case_id <= MAX_USE_CASE_ID:
            raise ValueError(f"Use case id must be below 2^14, got {use_case_id}")
        if not 0 <= payload <= 0xFFFF:
            raise ValueError(f"Use case payload must fit in 16 bits, got {payload}")

    @property
    def execution_mode(self) -> NoteExecutionMode:
        if self.value >> 30 in (0b00, 0b01):
            return NoteExecutionMode.NETWORK
        return NoteExecutionMode.LOCAL

    @property
    def requires_public_note(self) -> bool:
        return self.value >> 30 != 0b11

    def validate_for(self, note_type: NoteType) -> None:
        """
        Check that a note of the given type may carry this tag.

        Raises:
            ValueError: If the tag targets the network or a public use case
                and the note is not public
        """
        if self.requires_public_note and note_type != NoteType.PUBLIC:
            raise ValueError(
                f"Note tag {self.value:#010x} requires a public note, got {note_type.name}"
            )

    def to_felt(self) -> int:
        return self.value


class NoteExecutionHint(BaseModel):
    """When a note is expected to become consumable."""
    model_config = ConfigDict(frozen=True)

    NONE_TAG: ClassVar[int] = 0
    ALWAYS_TAG: ClassVar[int] = 1
    AFTER_BLOCK_TAG: ClassVar[int] = 2

    tag: int
    payload: int = 0

    @model_validator(mode="after")
    def _check_encoding(self):
        if self.tag not in (0, 1, 2):
            raise ValueError(f"Unknown execution hint tag {self.tag}")
        if not 0 <= self.payload <= U32_MAX:
            raise ValueError(f"Execution hint payload must fit in 32 bits, got {self.payload}")
        if self.tag == 2 and self.payload == U32_MAX:
            raise ValueError("Block number u32::MAX is reserved")
        if self.tag in (0, 1) and self.payload != 0:
            raise ValueError("Execution hints none/always carry no payload")
        return self

    @classmethod
    def none(cls) -> "NoteExecutionHint":
        return cls(tag=cls.NONE_TAG)

    @classmethod
    def always(cls) -> "NoteExecutionHint":
        return cls(tag=cls.ALWAYS_TAG)

    @classmethod
    def after_block(cls, block_num: int) -> "NoteExecutionHint":
        return cls(tag=cls.AFTER_BLOCK_TAG, payload=block_num)

    def can_be_consumed(self, block_num: int) -> Optional[bool]:
        """Return whether the note is consumable at ``block_num``, None if unknown."""
        if self.tag == 1:
            return True
        if self.tag == 2:
            return block_num >= self.payload
        return None

    def to_felt(self) -> int:
        return (self.payload << 32) | self.tag


class NoteMetadata(BaseModel):
    """Provenance and routing data of a note."""
    model_config = ConfigDict(frozen=True)

    sender: AccountId
    note_type: NoteType
    tag: NoteTag
    execution_hint: NoteExecutionHint
    aux: int = 0

    @field_validator("aux")
    @classmethod
    def _check_aux(cls, value: int):
        return felt(value)

    @model_validator(mode="after")
    def _check_tag(self):
        self.tag.validate_for(self.note_type)
        return self

    def to_word(self) -> Word:
        hint = self.execution_hint
        return Word.from_ints(
            self.sender.suffix | (int(self.note_type) << 6) | hint.tag,
            self.sender.prefix,
            (hint.payload << 32) | self.tag.value,
            self.aux,
        )


class NoteInputs(BaseModel):
    """Ordered field elements passed to the note script."""
    model_config = ConfigDict(frozen=True)

    values: Tuple[int, ...] = ()

    @field_validator("values")
    @classmethod
    def _check_values(cls, value):
        if len(value) > MAX_INPUTS_PER_NOTE:
            raise ValueError(f"A note takes at most {MAX_INPUTS_PER_NOTE} inputs, got {len(value)}")
        for element in value:
            felt(element)
        return value

    @property
    def commitment(self) -> Word:
        return hash_elements(self.values)


class NoteScript(BaseModel):
    """
    Reference to a note script.

    Only the MAST root takes part in commitments; the script body is never
    interpreted by this package.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    root: Word


class NoteRecipient(BaseModel):
    """Binds a note to whoever can satisfy its script with its inputs."""
    model_config = ConfigDict(frozen=True)

    serial_num: Word
    script: NoteScript
    inputs: NoteInputs

    @property
    def digest(self) -> Word:
        serial_commitment = merge(self.serial_num, ZERO_WORD)
        return merge(merge(serial_commitment, self.script.root), self.inputs.commitment)


class Note(BaseModel):
    """An immutable, committed transfer unit."""
    model_config = ConfigDict(frozen=True)

    assets: NoteAssets
    metadata: NoteMetadata
    recipient: NoteRecipient

    @property
    def id(self) -> Word:
        """Note id, which commits to the recipient and the vault."""
        return merge(self.recipient.digest, self.assets.commitment)

    @property
    def commitment(self) -> Word:
        """Note commitment over vault, metadata and recipient."""
        return merge(self.id, self.metadata.to_word())

    @property
    def nullifier(self) -> Word:
        """Value published when the note is consumed."""
        return hash_elements(
            self.recipient.serial_num.to_list()
            + self.recipient.script.root.to_list()
            + self.recipient.inputs.commitment.to_list()
            + self.assets.commitment.to_list()
        )

    def to_wire(self) -> Dict[str, Any]:
        """
        Serialize the note to a JSON-compatible dictionary.

        The id and commitment are included in hex form for auditing and are
        checked again by ``from_wire``.
        """
        data = self.model_dump(mode="json")
        data["id"] = self.id.to_hex()
        data["commitment"] = self.commitment.to_hex()
        return data

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "Note":
        """
        Rebuild a note serialized with ``to_wire``.

        Raises:
            ValueError: If the embedded commitment does not match the fields
        """
        note = cls.model_validate(data)
        expected = data.get("commitment")
        if expected is not None and Word.from_hex(expected) != note.commitment:
            raise ValueError(f"Note commitment mismatch: expected {expected}, got {note.commitment.to_hex()}")
        return note


def p2id_target(note: Note) -> Optional[AccountId]:
    """Return the account a P2ID-shaped note is addressed to, if its inputs name one."""
    values: List[int] = list(note.recipient.inputs.values)
    if len(values) != 2:
        return None
    try:
        return AccountId(prefix=values[1], suffix=values[0])
    except ValueError:
        return None
