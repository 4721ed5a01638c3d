"""
Account identifiers.

Accounts themselves (keys, code, storage) live outside this package; the
protocol layer only needs their identifiers and the metadata bits encoded
in them.
"""
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .felt import Word, felt

ACCOUNT_ID_HEX_LENGTH = 30


class AccountType(IntEnum):
    """Account type, stored in bits 4..5 of the id prefix."""
    REGULAR_IMMUTABLE_CODE = 0
    REGULAR_UPDATABLE_CODE = 1
    FUNGIBLE_FAUCET = 2
    NON_FUNGIBLE_FAUCET = 3


class AccountStorageMode(IntEnum):
    """Account storage mode, stored in bits 6..7 of the id prefix."""
    PUBLIC = 0
    NETWORK = 1
    PRIVATE = 2


class AccountId(BaseModel):
    """
    Identifier of an account, made of two field elements.

    The low byte of ``prefix`` carries the id version, account type and
    storage mode. The low byte of ``suffix`` is always zero.
    """
    model_config = ConfigDict(frozen=True)

    prefix: int
    suffix: int

    @field_validator("prefix", "suffix")
    @classmethod
    def _check_felt(cls, value):
        return felt(value)

    @model_validator(mode="after")
    def _check_layout(self):
        if self.suffix & 0xFF:
            raise ValueError("Account id suffix must have its low byte set to zero")
        if self.prefix & 0x0F:
            raise ValueError(f"Unsupported account id version {self.prefix & 0x0F}")
        if (self.prefix >> 6) & 0b11 == 0b11:
            raise ValueError("Invalid account storage mode bits")
        return self

    @classmethod
    def from_hex(cls, value: str) -> "AccountId":
        """
        Parse an account id from its hex form.

        Args:
            value: ``0x`` followed by 30 hex characters

        Returns:
            Account id

        Raises:
            ValueError: If the string is malformed
        """
        digits = value[2:] if value.startswith("0x") else value
        if len(digits) != ACCOUNT_ID_HEX_LENGTH:
            raise ValueError(
                f"Account id must be exactly {ACCOUNT_ID_HEX_LENGTH} hex characters, got: {len(digits)}"
            )
        try:
            raw = bytes.fromhex(digits)
        except ValueError as e:
            raise ValueError(f"Invalid account id hex '{value}': {e}")
        prefix = int.from_bytes(raw[:8], "big")
        suffix = int.from_bytes(raw[8:], "big") << 8
        return cls(prefix=prefix, suffix=suffix)

    @classmethod
    def from_words(cls, word: Word) -> "AccountId":
        """
        Rebuild an account id stored in an account storage word.

        Faucet accounts keep their owner id as ``[.., .., suffix, prefix]``.
        This layout is owned by the faucet component and may change between
        versions, so callers must opt into it explicitly.
        """
        return cls(prefix=word[3], suffix=word[2])

    def to_hex(self) -> str:
        raw = self.prefix.to_bytes(8, "big") + (self.suffix >> 8).to_bytes(7, "big")
        return "0x" + raw.hex()

    @property
    def account_type(self) -> AccountType:
        return AccountType((self.prefix >> 4) & 0b11)

    @property
    def storage_mode(self) -> AccountStorageMode:
        return AccountStorageMode((self.prefix >> 6) & 0b11)

    @property
    def is_faucet(self) -> bool:
        return self.account_type in (AccountType.FUNGIBLE_FAUCET, AccountType.NON_FUNGIBLE_FAUCET)

    @property
    def is_network(self) -> bool:
        return self.storage_mode == AccountStorageMode.NETWORK

    def __str__(self) -> str:
        return self.to_hex()
