"""Pre-execution dry runs through an external simulation service or ``eth_call``."""

from __future__ import annotations

from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from swap_engine.errors import ErrorKind, Phase, SwapError, classifier
from swap_engine.models.swap import UnsignedTx
from swap_engine.clients.transactions import APPROVE_SELECTOR, TRANSFER_SELECTOR
from swap_engine.logging import log


class AssetChange(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str
    symbol: str
    amount: str
    usd_value: float = Field(default=0.0, alias="usdValue")


class SimulationReport(BaseModel):
    """Dry-run outcome; never authoritative for settlement."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    asset_changes: list[AssetChange] = Field(default_factory=list, alias="assetChanges")
    gas_fee_usd: float = Field(default=0.0, alias="gasFeeUSD")
    warnings: list[str] = Field(default_factory=list)
    gas_used: Optional[int] = None


def calldata_warnings(tx: UnsignedTx) -> list[str]:
    warnings: list[str] = []
    if tx.selector == APPROVE_SELECTOR:
        warnings.append("This transaction approves a contract to spend your tokens.")
    if tx.selector == TRANSFER_SELECTOR:
        warnings.append("This transaction transfers tokens to another address.")
    return warnings


class Simulator(Protocol):
    async def simulate(self, tx: UnsignedTx, sender: str, chain_id: int) -> SimulationReport: ...


class SimulationServiceClient:
    """Client for an HTTP simulation endpoint accepting ``{unsignedTx, chainId}``."""

    def __init__(self, url: str, api_key: Optional[str] = None, timeout_seconds: float = 15.0) -> None:
        self._url = url
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        if self._client is None:
            headers = {"Content-Type": "application/json", "Accept": "application/json"}
            if self._api_key:
                headers["X-Access-Key"] = self._api_key
            self._client = httpx.AsyncClient(headers=headers, timeout=self._timeout)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def simulate(self, tx: UnsignedTx, sender: str, chain_id: int) -> SimulationReport:
        await self.connect()
        assert self._client is not None

        payload = {"unsignedTx": {**tx.to_payload(), "from": sender}, "chainId": int(chain_id)}
        try:
            response = await self._client.post(self._url, json=payload)
        except httpx.TimeoutException as exc:
            raise SwapError(ErrorKind.NETWORK_TIMEOUT, f"simulation service timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise SwapError(ErrorKind.SIMULATION_REVERTED, f"simulation service unreachable: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400 or (isinstance(body, dict) and body.get("error")):
            detail = body.get("error") if isinstance(body, dict) else None
            log.warning(f"Simulation rejected status={response.status_code} error={detail or response.text[:200]}")
            raise SwapError(ErrorKind.SIMULATION_REVERTED, str(detail or f"HTTP {response.status_code}"))

        try:
            report = SimulationReport.model_validate(body)
        except ValidationError as exc:
            raise SwapError(ErrorKind.SIMULATION_REVERTED, f"malformed simulation response: {exc}") from exc

        report.warnings.extend(w for w in calldata_warnings(tx) if w not in report.warnings)
        return report


class RpcSimulator:
    """Dry-run a transaction with ``eth_call`` and ``eth_estimateGas`` on the node."""

    def __init__(self, rpc) -> None:
        self.rpc = rpc

    async def simulate(self, tx: UnsignedTx, sender: str, chain_id: int) -> SimulationReport:
        params = tx.to_tx_params(sender=sender)
        try:
            await self.rpc.call(params)
            gas_used = await self.rpc.estimate_gas(params)
        except SwapError:
            raise
        except Exception as exc:
            raise classifier.to_swap_error(exc, Phase.SIMULATION) from exc
        return SimulationReport(gas_used=gas_used, warnings=calldata_warnings(tx))
