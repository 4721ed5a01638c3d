"""
Fungible assets and note asset vaults.
"""
from typing import Dict, List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .account import AccountId, AccountType
from .exceptions import AssetError
from .felt import Word, flatten, hash_elements

MAX_AMOUNT = 2**63 - 2**31
MAX_ASSETS_PER_NOTE = 255


class FungibleAsset(BaseModel):
    """A positive amount of the token issued by one fungible faucet."""
    model_config = ConfigDict(frozen=True)

    faucet_id: AccountId
    amount: int

    @field_validator("faucet_id")
    @classmethod
    def _check_faucet(cls, value: AccountId):
        if value.account_type != AccountType.FUNGIBLE_FAUCET:
            raise ValueError(f"Account {value.to_hex()} is not a fungible faucet")
        return value

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: int):
        if isinstance(value, bool) or not 0 < value <= MAX_AMOUNT:
            raise ValueError(f"Asset amount must be in 1..{MAX_AMOUNT}, got {value}")
        return value

    @classmethod
    def new(cls, faucet_id: AccountId, amount: int) -> "FungibleAsset":
        """
        Create an asset, converting validation failures to AssetError.

        Raises:
            AssetError: If the faucet id or amount is invalid
        """
        try:
            return cls(faucet_id=faucet_id, amount=amount)
        except ValidationError as e:
            raise AssetError(f"Invalid fungible asset: {e}") from e

    def add(self, other: "FungibleAsset") -> "FungibleAsset":
        """
        Merge two assets of the same faucet.

        Raises:
            AssetError: If faucets differ or the sum exceeds MAX_AMOUNT
        """
        if other.faucet_id != self.faucet_id:
            raise AssetError(
                f"Cannot add assets of faucet {other.faucet_id} to faucet {self.faucet_id}"
            )
        total = self.amount + other.amount
        if total > MAX_AMOUNT:
            raise AssetError(f"Asset amount overflow: {total} exceeds {MAX_AMOUNT}")
        return FungibleAsset(faucet_id=self.faucet_id, amount=total)

    def to_word(self) -> Word:
        return Word.from_ints(self.amount, 0, self.faucet_id.suffix, self.faucet_id.prefix)


class NoteAssets(BaseModel):
    """
    The vault carried by a note.

    Assets from the same faucet are merged on construction, so the vault
    holds at most one entry per faucet, in first-seen order.
    """
    model_config = ConfigDict(frozen=True)

    assets: Tuple[FungibleAsset, ...] = ()

    @model_validator(mode="after")
    def _check_unique_faucets(self):
        faucets = [asset.faucet_id for asset in self.assets]
        if len(set(faucets)) != len(faucets):
            raise ValueError("Vault holds more than one entry for a faucet")
        return self

    @classmethod
    def new(cls, assets: Sequence[FungibleAsset]) -> "NoteAssets":
        """
        Build a vault, merging assets that share a faucet.

        Raises:
            AssetError: If an entry is not an asset, a merge overflows, or
                the vault holds too many assets
        """
        merged: Dict[AccountId, FungibleAsset] = {}
        for asset in assets:
            if not isinstance(asset, FungibleAsset):
                raise AssetError(f"Unsupported asset type {type(asset).__name__}")
            existing = merged.get(asset.faucet_id)
            merged[asset.faucet_id] = existing.add(asset) if existing else asset
        if len(merged) > MAX_ASSETS_PER_NOTE:
            raise AssetError(
                f"A note holds at most {MAX_ASSETS_PER_NOTE} assets, got {len(merged)}"
            )
        return cls(assets=tuple(merged.values()))

    def is_empty(self) -> bool:
        return not self.assets

    def amount_of(self, faucet_id: AccountId) -> int:
        for asset in self.assets:
            if asset.faucet_id == faucet_id:
                return asset.amount
        return 0

    def to_words(self) -> List[Word]:
        return [asset.to_word() for asset in self.assets]

    @property
    def commitment(self) -> Word:
        return hash_elements(flatten(self.to_words()))
