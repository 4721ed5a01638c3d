"""
Field elements, words and the hash used for every note commitment.

All protocol values are reduced to elements of the 64-bit prime field
``P = 2**64 - 2**32 + 1`` before hashing. A word is four field elements.
"""
import hashlib
from typing import Iterable, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

FIELD_MODULUS = 2**64 - 2**32 + 1
WORD_SIZE = 4
WORD_HEX_LENGTH = WORD_SIZE * 8 * 2


def felt(value: int) -> int:
    """
    Check that an integer is a canonical field element.

    Args:
        value: Integer to check

    Returns:
        The same integer

    Raises:
        ValueError: If the value is not an int in ``[0, P)``
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Field element must be an int, got {type(value).__name__}")
    if not 0 <= value < FIELD_MODULUS:
        raise ValueError(f"Value {value} is not a canonical field element")
    return value


class Word(BaseModel):
    """Four field elements, the unit of every digest and storage slot."""
    model_config = ConfigDict(frozen=True)

    elements: Tuple[int, int, int, int]

    @field_validator("elements")
    @classmethod
    def _check_elements(cls, value):
        for element in value:
            felt(element)
        return value

    @classmethod
    def from_ints(cls, *values: int) -> "Word":
        if len(values) != WORD_SIZE:
            raise ValueError(f"A word has {WORD_SIZE} elements, got {len(values)}")
        return cls(elements=tuple(values))

    @classmethod
    def zero(cls) -> "Word":
        return cls(elements=(0, 0, 0, 0))

    @classmethod
    def from_hex(cls, value: str) -> "Word":
        """
        Parse a word from its fixed-width hex form.

        Args:
            value: ``0x`` followed by 64 hex characters

        Returns:
            Parsed word

        Raises:
            ValueError: If the string is malformed or an element is not canonical
        """
        if not isinstance(value, str):
            raise ValueError(f"Word hex must be a string, got {type(value).__name__}")
        digits = value[2:] if value.startswith("0x") else value
        if len(digits) != WORD_HEX_LENGTH:
            raise ValueError(
                f"Word hex must be exactly {WORD_HEX_LENGTH} hex characters, got: {len(digits)}"
            )
        try:
            raw = bytes.fromhex(digits)
        except ValueError as e:
            raise ValueError(f"Invalid word hex '{value}': {e}")
        return cls.from_bytes(raw)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Word":
        if len(raw) != WORD_SIZE * 8:
            raise ValueError(f"A word is {WORD_SIZE * 8} bytes, got {len(raw)}")
        elements = tuple(
            int.from_bytes(raw[i:i + 8], "little") for i in range(0, len(raw), 8)
        )
        return cls(elements=elements)

    def to_bytes(self) -> bytes:
        return b"".join(e.to_bytes(8, "little") for e in self.elements)

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    def to_list(self) -> List[int]:
        return list(self.elements)

    def __getitem__(self, index: int) -> int:
        return self.elements[index]

    def __len__(self) -> int:
        return WORD_SIZE

    def __str__(self) -> str:
        return self.to_hex()


ZERO_WORD = Word.zero()


def hash_elements(elements: Iterable[int]) -> Word:
    """
    Hash a sequence of field elements into a word.

    Each element is encoded as 8 little-endian bytes; the SHA-256 digest is
    split into four 8-byte little-endian integers reduced modulo P.

    Args:
        elements: Field elements to hash

    Returns:
        Digest word
    """
    data = b"".join(felt(e).to_bytes(8, "little") for e in elements)
    digest = hashlib.sha256(data).digest()
    return Word(elements=tuple(
        int.from_bytes(digest[i:i + 8], "little") % FIELD_MODULUS
        for i in range(0, 32, 8)
    ))


def merge(left: Word, right: Word) -> Word:
    """Hash two words into one."""
    return hash_elements(left.elements + right.elements)


def bytes_to_elements(data: bytes) -> List[int]:
    """
    Pack arbitrary bytes into field elements, 7 bytes per element.

    The byte length is prepended so that inputs differing only in trailing
    zero bytes hash differently.
    """
    elements = [len(data)]
    for i in range(0, len(data), 7):
        elements.append(int.from_bytes(data[i:i + 7], "little"))
    return elements


def flatten(words: Sequence[Word]) -> List[int]:
    result: List[int] = []
    for word in words:
        result.extend(word.elements)
    return result
