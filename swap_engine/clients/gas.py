"""Gas parameter estimation for EIP-1559 chains."""

from __future__ import annotations

from dataclasses import dataclass

from swap_engine.clients.rpc import RPCError

DEFAULT_PRIORITY_FEE_WEI = 1_500_000_000


@dataclass(frozen=True)
class GasQuote:
    gas: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
    tx_type: int = 2

    def to_tx_params(self) -> dict[str, int]:
        return {
            "gas": self.gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            "maxFeePerGas": self.max_fee_per_gas,
            "type": self.tx_type,
        }


class GasManager:
    def __init__(self, rpc, multiplier: float = 1.15) -> None:
        self.rpc = rpc
        self.multiplier = multiplier

    async def aggressive_fast(self, gas_limit: int) -> GasQuote:
        block = await self.rpc.latest_block()
        base_fee = int(block.get("baseFeePerGas", 0) or 0)

        try:
            priority = await self.rpc.max_priority_fee()
        except RPCError:
            # Some nodes do not implement eth_maxPriorityFeePerGas
            priority = DEFAULT_PRIORITY_FEE_WEI

        boosted_priority = max(int(priority * self.multiplier), 1)
        max_fee = max(int(base_fee * self.multiplier + boosted_priority), boosted_priority)

        return GasQuote(
            gas=int(gas_limit),
            max_priority_fee_per_gas=boosted_priority,
            max_fee_per_gas=max_fee,
        )

    async def has_balance_for_gas(self, sender: str, gas_quote: GasQuote, value: int = 0) -> bool:
        balance = await self.rpc.balance(sender)
        estimated = int(gas_quote.gas) * int(gas_quote.max_fee_per_gas)
        return balance >= estimated + int(value)
