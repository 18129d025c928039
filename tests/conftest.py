"""Shared fixtures: a small mainnet-like token set and in-memory chain fakes."""

from __future__ import annotations

import pytest

from swap_engine.clients.registry import TokenRegistry
from swap_engine.clients.reserves import ReserveOracle
from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.chain import NATIVE_PLACEHOLDER_ADDRESS
from swap_engine.models.swap import Reserves
from swap_engine.models.token import Token

ROUTER = "0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D"
OWNER = "0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1"

ETH = Token(symbol="ETH", address=NATIVE_PLACEHOLDER_ADDRESS, decimals=18, is_native=True)
WETH = Token(
    symbol="WETH",
    address="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    decimals=18,
    is_wrapped_native=True,
)
USDC = Token(symbol="USDC", address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", decimals=6)
DAI = Token(symbol="DAI", address="0x6B175474E89094C44Da98b954EedeAC495271d0F", decimals=18)


class FakeOracle(ReserveOracle):
    """Reserves keyed by directed edge; unknown edges have no liquidity."""

    def __init__(self) -> None:
        self.pools: dict[tuple[str, str], tuple[int, int]] = {}
        self.timeouts: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []
        self.block = 19_000_000

    @staticmethod
    def _key(token_a: Token, token_b: Token) -> tuple[str, str]:
        return (token_a.address.lower(), token_b.address.lower())

    def add_pool(self, token_a: Token, token_b: Token, reserve_a: int, reserve_b: int) -> None:
        self.pools[self._key(token_a, token_b)] = (reserve_a, reserve_b)
        self.pools[self._key(token_b, token_a)] = (reserve_b, reserve_a)

    def time_out(self, token_a: Token, token_b: Token) -> None:
        self.timeouts.add(self._key(token_a, token_b))
        self.timeouts.add(self._key(token_b, token_a))

    async def get_reserves(self, token_in: Token, token_out: Token) -> Reserves:
        key = self._key(token_in, token_out)
        self.calls.append((token_in.symbol, token_out.symbol))
        if key in self.timeouts:
            raise SwapError(ErrorKind.NETWORK_TIMEOUT, "getReserves timed out")
        reserve_in, reserve_out = self.pools.get(key, (0, 0))
        return Reserves(
            edge=(token_in.address, token_out.address),
            reserve_from=reserve_in,
            reserve_to=reserve_out,
            observed_at=self.block,
        )


@pytest.fixture
def registry() -> TokenRegistry:
    return TokenRegistry([ETH, WETH, USDC, DAI])


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()
