"""ERC-20 allowance and balance checks ahead of a swap."""

from __future__ import annotations

from web3 import Web3

from swap_engine.models.token import Token
from swap_engine.settings.config import ERC20_ABI
from swap_engine.logging import log


class ApprovalGate:
    """Advisory allowance check; never submits a transaction itself.

    Allowance and balance are external mutable state, so nothing here is
    cached: callers re-evaluate after any approval or swap settles.
    """

    def __init__(self, rpc) -> None:
        self.rpc = rpc

    def _token_contract(self, token: Token):
        return self.rpc.contract(token.address, ERC20_ABI)

    async def allowance(self, token: Token, owner: str, spender: str) -> int:
        contract = self._token_contract(token)
        return int(
            await self.rpc.read(
                contract.functions.allowance(Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)),
                label="allowance",
            )
        )

    async def needs_approval(self, token: Token, owner: str, spender: str, amount_in: int) -> bool:
        if token.is_native:
            return False
        current_allowance = await self.allowance(token, owner, spender)
        required = current_allowance < int(amount_in)
        log.debug(
            f"Allowance check token={token.symbol} owner={owner} spender={spender} "
            f"allowance={current_allowance} amount_in={amount_in} needs_approval={required}"
        )
        return required

    async def balance_of(self, token: Token, owner: str) -> int:
        if token.is_native:
            return await self.rpc.balance(owner)
        contract = self._token_contract(token)
        return int(await self.rpc.read(contract.functions.balanceOf(Web3.to_checksum_address(owner)), label="balanceOf"))

    async def has_sufficient_balance(self, token: Token, owner: str, amount_in: int) -> bool:
        return await self.balance_of(token, owner) >= int(amount_in)
