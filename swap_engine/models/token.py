"""Token model shared by the registry, router and builder."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from web3 import Web3

from swap_engine.models.chain import ADDRESS_REGEX


class Token(BaseModel):
    """Immutable token descriptor; owned by the registry for a network session."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    address: str
    decimals: int = Field(ge=0, le=255)
    is_native: bool = False
    is_wrapped_native: bool = False

    @field_validator("address")
    @classmethod
    def checksum_address(cls, value: str) -> str:
        if not ADDRESS_REGEX.match(value):
            raise ValueError(f"Invalid Ethereum address: {value}")
        return Web3.to_checksum_address(value)

    @model_validator(mode="after")
    def check_designation(self) -> "Token":
        if self.is_native and self.is_wrapped_native:
            raise ValueError(f"Token {self.symbol} cannot be both native and wrapped-native")
        return self

    def same_as(self, other: "Token") -> bool:
        return self.address.lower() == other.address.lower()

    def __str__(self) -> str:
        return self.symbol
