"""Reserve reads for V2-style constant-product pairs."""

from __future__ import annotations

from abc import ABC, abstractmethod

from web3 import Web3

from swap_engine.models.swap import Reserves
from swap_engine.models.token import Token
from swap_engine.settings.config import V2_FACTORY_ABI, V2_PAIR_ABI
from swap_engine.logging import log

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class ReserveOracle(ABC):
    """Read-only source of pool reserves; never owns pool state."""

    @abstractmethod
    async def get_reserves(self, token_in: Token, token_out: Token) -> Reserves:
        """Return the current ``(reserve_in, reserve_out)`` snapshot for the directed edge."""


class PairReserveOracle(ReserveOracle):
    """Resolve the pair through the factory and read ``getReserves``."""

    def __init__(self, rpc, factory_address: str) -> None:
        self.rpc = rpc
        self.factory = rpc.contract(Web3.to_checksum_address(factory_address), V2_FACTORY_ABI)
        self._pairs: dict[tuple[str, str], str] = {}

    async def pair_address(self, token_a: Token, token_b: Token) -> str:
        key = tuple(sorted((token_a.address.lower(), token_b.address.lower())))
        cached = self._pairs.get(key)
        if cached:
            return cached
        pair = str(
            await self.rpc.read(self.factory.functions.getPair(token_a.address, token_b.address), label="getPair")
        )
        # Only existing pairs are cached; a missing pair may be created later
        if pair.lower() != ZERO_ADDRESS:
            self._pairs[key] = pair
        return pair

    async def get_reserves(self, token_in: Token, token_out: Token) -> Reserves:
        edge = (token_in.address, token_out.address)
        block = await self.rpc.block_number()
        pair_address = await self.pair_address(token_in, token_out)
        if pair_address.lower() == ZERO_ADDRESS:
            log.debug(f"No pair for edge {token_in.symbol}/{token_out.symbol}")
            return Reserves(edge=edge, reserve_from=0, reserve_to=0, observed_at=block)

        pair = self.rpc.contract(pair_address, V2_PAIR_ABI)
        reserve0, reserve1, _ = await self.rpc.read(pair.functions.getReserves(), label="getReserves")
        token0 = str(await self.rpc.read(pair.functions.token0(), label="token0"))

        if token0.lower() == token_in.address.lower():
            reserve_in, reserve_out = int(reserve0), int(reserve1)
        else:
            reserve_in, reserve_out = int(reserve1), int(reserve0)

        return Reserves(edge=edge, reserve_from=reserve_in, reserve_to=reserve_out, observed_at=block)
