from __future__ import annotations

import pytest
from web3 import Web3

from conftest import ETH, OWNER, ROUTER, USDC
from swap_engine.clients.approval import ApprovalGate


class _FakeRPC:
    def __init__(self, allowance: int = 0, token_balance: int = 0, native_balance: int = 0) -> None:
        self.w3 = Web3()
        self.allowance = allowance
        self.token_balance = token_balance
        self.native_balance = native_balance
        self.reads: list[str] = []

    def contract(self, address, abi):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def read(self, contract_fn, label=None):
        self.reads.append(label)
        return {"allowance": self.allowance, "balanceOf": self.token_balance}[label]

    async def balance(self, address):
        return self.native_balance


@pytest.mark.asyncio
@pytest.mark.parametrize("allowance", [0, 1, 2**256 - 1])
async def test_native_token_never_needs_approval(allowance):
    rpc = _FakeRPC(allowance=allowance)
    gate = ApprovalGate(rpc)

    assert await gate.needs_approval(ETH, OWNER, ROUTER, 10**18) is False
    assert rpc.reads == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "allowance,amount_in,expected",
    [(0, 1, True), (999, 1_000, True), (1_000, 1_000, False), (2**256 - 1, 10**30, False)],
)
async def test_needs_approval_iff_allowance_below_amount(allowance, amount_in, expected):
    gate = ApprovalGate(_FakeRPC(allowance=allowance))
    assert await gate.needs_approval(USDC, OWNER, ROUTER, amount_in) is expected


@pytest.mark.asyncio
async def test_allowance_is_read_fresh_every_time():
    rpc = _FakeRPC(allowance=0)
    gate = ApprovalGate(rpc)

    assert await gate.needs_approval(USDC, OWNER, ROUTER, 500) is True
    rpc.allowance = 500
    assert await gate.needs_approval(USDC, OWNER, ROUTER, 500) is False
    assert rpc.reads == ["allowance", "allowance"]


@pytest.mark.asyncio
async def test_balance_uses_native_balance_for_native_token():
    rpc = _FakeRPC(token_balance=10, native_balance=10**18)
    gate = ApprovalGate(rpc)

    assert await gate.has_sufficient_balance(ETH, OWNER, 10**18) is True
    assert await gate.has_sufficient_balance(USDC, OWNER, 11) is False
