"""RPC helpers for swap quoting, simulation and execution."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from web3 import Web3

from swap_engine.errors import ErrorKind, SwapError
from swap_engine.logging import log

T = TypeVar("T")


class RPCError(Exception):
    """Raised when RPC interactions fail."""


@dataclass(frozen=True)
class RPCNetworkInfo:
    chain_id: int
    block_number: int


class RPC:
    """Thin wrapper around a web3 provider with timeouts and normalized errors.

    web3's HTTP provider is blocking; every call is pushed to a worker thread
    and bounded by ``timeout_seconds`` so no external call can hang the
    controller's event loop.
    """

    def __init__(self, url: str, timeout_seconds: float = 10.0, w3: Web3 | None = None) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.w3 = w3 or Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout_seconds}))
        if not self.w3.is_connected():
            raise RPCError(f"RPC connection failed for url={url}")

    async def _run(self, label: str, fn: Callable[[], T], timeout: float | None = None) -> T:
        limit = self.timeout_seconds if timeout is None else timeout
        try:
            return await asyncio.wait_for(asyncio.to_thread(fn), timeout=limit)
        except asyncio.TimeoutError as exc:
            log.warning(f"RPC call timed out call={label} timeout={limit}s")
            raise SwapError(ErrorKind.NETWORK_TIMEOUT, f"{label} timed out after {limit}s") from exc

    def contract(self, address: str, abi: list[dict[str, Any]]):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def chain_id(self) -> int:
        try:
            return int(await self._run("eth_chainId", lambda: self.w3.eth.chain_id))
        except SwapError:
            raise
        except Exception as exc:
            raise RPCError(f"Failed to fetch chain id: {exc}") from exc

    async def block_number(self) -> int:
        try:
            return int(await self._run("eth_blockNumber", lambda: self.w3.eth.block_number))
        except SwapError:
            raise
        except Exception as exc:
            raise RPCError(f"Failed to fetch block number: {exc}") from exc

    async def network_info(self) -> RPCNetworkInfo:
        return RPCNetworkInfo(chain_id=await self.chain_id(), block_number=await self.block_number())

    async def latest_block(self) -> dict[str, Any]:
        try:
            return dict(await self._run("eth_getBlockByNumber", lambda: self.w3.eth.get_block("latest")))
        except SwapError:
            raise
        except Exception as exc:
            raise RPCError(f"Failed to fetch latest block: {exc}") from exc

    async def max_priority_fee(self) -> int:
        try:
            return int(await self._run("eth_maxPriorityFeePerGas", lambda: self.w3.eth.max_priority_fee))
        except SwapError:
            raise
        except Exception as exc:
            raise RPCError(f"Failed to fetch priority fee: {exc}") from exc

    async def read(self, contract_fn, label: str | None = None) -> Any:
        """Execute a bound contract function's ``call()`` under the RPC timeout."""
        name = label or getattr(contract_fn, "fn_name", "eth_call")
        try:
            return await self._run(name, contract_fn.call)
        except SwapError:
            raise
        except Exception as exc:
            raise RPCError(f"Contract read {name} failed: {exc}") from exc

    async def get_code(self, address: str) -> bytes:
        try:
            return bytes(await self._run("eth_getCode", lambda: self.w3.eth.get_code(Web3.to_checksum_address(address))))
        except SwapError:
            raise
        except Exception as exc:
            raise RPCError(f"Failed to fetch code for {address}: {exc}") from exc

    async def balance(self, address: str) -> int:
        try:
            return int(await self._run("eth_getBalance", lambda: self.w3.eth.get_balance(Web3.to_checksum_address(address))))
        except SwapError:
            raise
        except Exception as exc:
            raise RPCError(f"Failed to fetch balance for {address}: {exc}") from exc

    async def nonce(self, address: str) -> int:
        try:
            return int(
                await self._run(
                    "eth_getTransactionCount",
                    lambda: self.w3.eth.get_transaction_count(Web3.to_checksum_address(address), "pending"),
                )
            )
        except SwapError:
            raise
        except Exception as exc:
            raise RPCError(f"Failed to fetch nonce for {address}: {exc}") from exc

    async def call(self, tx: dict[str, Any]) -> bytes:
        # Reverts propagate untouched so the caller can classify them
        return await self._run("eth_call", lambda: self.w3.eth.call(tx))

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        return int(await self._run("eth_estimateGas", lambda: self.w3.eth.estimate_gas(tx)))

    async def send_raw(self, raw_tx: bytes) -> str:
        tx_hash = await self._run("eth_sendRawTransaction", lambda: self.w3.eth.send_raw_transaction(raw_tx))
        return Web3.to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> dict[str, Any]:
        receipt = await self._run(
            "eth_getTransactionReceipt",
            lambda: self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout),
            timeout=timeout + self.timeout_seconds,
        )
        return dict(receipt)
