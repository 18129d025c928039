"""Signing, broadcasting and receipt tracking for built transactions."""

from __future__ import annotations

from typing import Any, Protocol

from eth_account import Account
from web3 import Web3

from swap_engine.clients.gas import GasManager
from swap_engine.errors import ErrorKind, Phase, SwapError, classifier
from swap_engine.models.chain import NetworkConfig
from swap_engine.models.swap import ExecutionReceipt, UnsignedTx
from swap_engine.logging import log


class Signer(Protocol):
    address: str

    def sign(self, tx: dict[str, Any]) -> bytes: ...


class LocalAccountSigner:
    """Sign with an in-process private key (scripts and tests; not key management)."""

    def __init__(self, private_key: str) -> None:
        self._account = Account.from_key(private_key)
        self.address = Web3.to_checksum_address(self._account.address)

    def sign(self, tx: dict[str, Any]) -> bytes:
        signed = self._account.sign_transaction(tx)
        raw_tx = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
        if raw_tx is None:
            raise SwapError(ErrorKind.EXECUTION_REVERTED, "Signed transaction has no raw payload")
        return bytes(raw_tx)


class TransactionExecutor:
    """Submit one unsigned transaction and follow it to a receipt."""

    def __init__(
        self,
        rpc,
        network: NetworkConfig,
        gas: GasManager | None = None,
        receipt_timeout_seconds: float = 180.0,
    ) -> None:
        self.rpc = rpc
        self.network = network
        self.gas = gas or GasManager(rpc)
        self.receipt_timeout_seconds = receipt_timeout_seconds
        self._verified_code: set[str] = set()

    async def _ensure_contract(self, address: str) -> None:
        key = address.lower()
        if key in self._verified_code:
            return
        code = await self.rpc.get_code(address)
        if not code or code in (b"", b"\x00"):
            # Never send value or calldata to an address without code
            raise SwapError(
                ErrorKind.EXECUTION_REVERTED,
                f"{address} has no contract code on {self.network.name}",
            )
        self._verified_code.add(key)

    async def submit(self, tx: UnsignedTx, signer: Signer) -> str:
        """Sign and broadcast; returns the transaction hash."""
        try:
            await self._ensure_contract(tx.to)
            nonce = await self.rpc.nonce(signer.address)
            gas_quote = await self.gas.aggressive_fast(tx.gas_hint)
            if not await self.gas.has_balance_for_gas(signer.address, gas_quote, value=tx.value):
                raise SwapError(ErrorKind.INSUFFICIENT_BALANCE, "insufficient native balance for value plus gas")
            params = {
                **tx.to_tx_params(sender=signer.address),
                "nonce": nonce,
                "chainId": self.network.chain_id,
                **gas_quote.to_tx_params(),
            }
            raw_tx = signer.sign(params)
            tx_hash = await self.rpc.send_raw(raw_tx)
        except SwapError:
            raise
        except Exception as exc:
            raise classifier.to_swap_error(exc, Phase.EXECUTION) from exc

        log.info(f"Broadcasted tx hash={tx_hash} nonce={nonce} to={tx.to}")
        return tx_hash

    async def wait(self, tx_hash: str) -> ExecutionReceipt:
        try:
            raw = await self.rpc.wait_for_receipt(tx_hash, timeout=self.receipt_timeout_seconds)
        except SwapError:
            raise
        except Exception as exc:
            raise classifier.to_swap_error(exc, Phase.EXECUTION) from exc

        receipt = ExecutionReceipt(
            tx_hash=tx_hash,
            status=int(raw.get("status", 0)),
            block_number=raw.get("blockNumber"),
            gas_used=raw.get("gasUsed"),
            explorer_url=self.network.explorer_tx_url(tx_hash),
            raw=raw,
        )
        if not receipt.succeeded:
            raise SwapError(ErrorKind.EXECUTION_REVERTED, f"transaction {tx_hash} reverted on-chain")
        return receipt

    async def execute(self, tx: UnsignedTx, signer: Signer) -> ExecutionReceipt:
        tx_hash = await self.submit(tx, signer)
        receipt = await self.wait(tx_hash)
        if receipt.explorer_url:
            log.info(f"Tx explorer url={receipt.explorer_url}")
        return receipt
