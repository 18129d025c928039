"""Swap planning structures: routes, reserves, quotes and unsigned transactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.token import Token


class SwapKind(str, Enum):
    """Closed set of call shapes the builder knows how to encode."""

    WRAP = "wrap"
    UNWRAP = "unwrap"
    NATIVE_IN = "native_in"
    NATIVE_OUT = "native_out"
    TOKEN_TO_TOKEN = "token_to_token"


class QuoteSource(str, Enum):
    ONCHAIN = "onchain"
    PRICE_FALLBACK = "price_fallback"


def swap_kind_for(token_in: Token, token_out: Token) -> SwapKind:
    if token_in.is_native and token_out.is_wrapped_native:
        return SwapKind.WRAP
    if token_in.is_wrapped_native and token_out.is_native:
        return SwapKind.UNWRAP
    if token_in.is_native:
        return SwapKind.NATIVE_IN
    if token_out.is_native:
        return SwapKind.NATIVE_OUT
    return SwapKind.TOKEN_TO_TOKEN


@dataclass(frozen=True)
class Route:
    """Validated 2- or 3-token route.

    ``hops`` lives in pool space: a native end is already replaced by the
    wrapped-native token, except for wrap/unwrap conversions where the two
    hops are the user-facing tokens themselves.
    """

    token_in: Token
    token_out: Token
    hops: tuple[Token, ...]
    kind: SwapKind

    def __post_init__(self) -> None:
        if len(self.hops) not in (2, 3):
            raise SwapError(
                ErrorKind.UNSUPPORTED_ROUTE_SHAPE,
                f"route must have 2 or 3 tokens, got {len(self.hops)}",
            )
        for left, right in zip(self.hops, self.hops[1:]):
            if left.same_as(right):
                raise SwapError(
                    ErrorKind.UNSUPPORTED_ROUTE_SHAPE,
                    f"route repeats {left.symbol} on adjacent hops",
                )
        if self.kind is not swap_kind_for(self.token_in, self.token_out):
            raise SwapError(
                ErrorKind.UNSUPPORTED_ROUTE_SHAPE,
                f"{self.kind.value} does not match {self.token_in.symbol}->{self.token_out.symbol}",
            )
        if self.is_conversion and len(self.hops) != 2:
            raise SwapError(ErrorKind.UNSUPPORTED_ROUTE_SHAPE, "wrap/unwrap routes have exactly one edge")

    @property
    def is_conversion(self) -> bool:
        return self.kind in (SwapKind.WRAP, SwapKind.UNWRAP)

    @property
    def path(self) -> list[str]:
        return [token.address for token in self.hops]

    @property
    def edges(self) -> list[tuple[Token, Token]]:
        return list(zip(self.hops, self.hops[1:]))

    def describe(self) -> str:
        return " -> ".join(token.symbol for token in self.hops)


@dataclass(frozen=True)
class Reserves:
    """Point-in-time reserve snapshot for one directed pool edge."""

    edge: tuple[str, str]
    reserve_from: int
    reserve_to: int
    observed_at: int

    @property
    def is_empty(self) -> bool:
        return self.reserve_from <= 0 or self.reserve_to <= 0


@dataclass(frozen=True)
class Quote:
    route: Route
    amount_in: int
    amount_out: int
    price_impact_bps: int
    source: QuoteSource = QuoteSource.ONCHAIN
    hop_amounts: tuple[int, ...] = ()
    observed_at: int | None = None

    @property
    def is_tradable(self) -> bool:
        return self.source is QuoteSource.ONCHAIN


@dataclass(frozen=True)
class SlippageBound:
    min_amount_out: int
    deadline: int


@dataclass(frozen=True)
class UnsignedTx:
    to: str
    data: str
    value: int = 0
    gas_hint: int = 0

    @property
    def selector(self) -> str:
        return self.data[:10].lower()

    def to_tx_params(self, sender: str | None = None) -> dict[str, Any]:
        tx: dict[str, Any] = {
            "to": self.to,
            "data": self.data,
            "value": int(self.value),
        }
        if sender is not None:
            tx["from"] = sender
        return tx

    def to_payload(self) -> dict[str, str]:
        return {
            "to": self.to,
            "data": self.data,
            "value": hex(int(self.value)),
            "gas": hex(int(self.gas_hint)),
        }


@dataclass(frozen=True)
class ExecutionReceipt:
    tx_hash: str
    status: int
    block_number: int | None = None
    gas_used: int | None = None
    explorer_url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == 1
