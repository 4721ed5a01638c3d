"""
Randomness sources for serial numbers and seeds.

Randomness is an explicit capability passed to whoever needs it, so tests
can swap in a seeded generator and get reproducible notes.
"""
import hashlib
import secrets
import threading
from typing import Protocol, Union

from .felt import FIELD_MODULUS, Word


class FeltRng(Protocol):
    """Protocol for random field element sources"""

    def draw_felt(self) -> int:
        """Draw a uniformly random field element"""
        ...

    def draw_word(self) -> Word:
        """Draw a word of four random field elements"""
        ...


class SecureRng:
    """Draws from the operating system CSPRNG. Use for private note serials."""

    def draw_felt(self) -> int:
        return secrets.randbelow(FIELD_MODULUS)

    def draw_word(self) -> Word:
        return Word(elements=tuple(self.draw_felt() for _ in range(4)))

    def fill_bytes(self, size: int) -> bytes:
        return secrets.token_bytes(size)


class DeterministicRng:
    """
    Seeded generator producing the same sequence for the same seed.

    Output is SHA-256 in counter mode, so it is reproducible across
    platforms. Not suitable for notes that must stay unlinkable.
    """

    def __init__(self, seed: Union[bytes, int, str] = 0):
        if isinstance(seed, int):
            seed = seed.to_bytes(32, "little")
        elif isinstance(seed, str):
            seed = seed.encode("utf-8")
        self._seed = bytes(seed)
        self._counter = 0
        self._buffer = b""
        self._lock = threading.Lock()

    def fill_bytes(self, size: int) -> bytes:
        with self._lock:
            while len(self._buffer) < size:
                block = hashlib.sha256(self._seed + self._counter.to_bytes(8, "little")).digest()
                self._counter += 1
                self._buffer += block
            out, self._buffer = self._buffer[:size], self._buffer[size:]
            return out

    def draw_felt(self) -> int:
        # rejection sampling keeps the distribution uniform over the field
        while True:
            candidate = int.from_bytes(self.fill_bytes(8), "little")
            if candidate < FIELD_MODULUS:
                return candidate

    def draw_word(self) -> Word:
        return Word(elements=tuple(self.draw_felt() for _ in range(4)))
