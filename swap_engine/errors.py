"""Closed failure taxonomy and raw-exception classification."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any

import httpx
from web3.exceptions import ContractLogicError, TimeExhausted


class ErrorKind(str, Enum):
    """Every way a swap intent can fail."""

    INVALID_PAIR = "InvalidPair"
    ROUTE_UNAVAILABLE = "RouteUnavailable"
    NO_ROUTE_AND_NO_PRICE_DATA = "NoRouteAndNoPriceData"
    INVALID_TOLERANCE = "InvalidTolerance"
    UNSUPPORTED_ROUTE_SHAPE = "UnsupportedRouteShape"
    INSUFFICIENT_ALLOWANCE = "InsufficientAllowance"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    SIMULATION_REVERTED = "SimulationReverted"
    EXECUTION_REVERTED = "ExecutionReverted"
    USER_REJECTED = "UserRejected"
    NETWORK_TIMEOUT = "NetworkTimeout"


class SwapError(Exception):
    """Raised for any failure that maps onto an ``ErrorKind``."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or kind.value
        super().__init__(f"{kind.value}: {self.message}")


class ConcurrentExecutionError(RuntimeError):
    """Raised when an execution is already pending for the same owner and pair."""


class Phase(str, Enum):
    """Lifecycle phase a raw failure happened in."""

    QUOTING = "quoting"
    BALANCE = "balance"
    APPROVAL = "approval"
    SIMULATION = "simulation"
    EXECUTION = "execution"


_PHASE_DEFAULTS: dict[Phase, ErrorKind] = {
    Phase.QUOTING: ErrorKind.ROUTE_UNAVAILABLE,
    Phase.BALANCE: ErrorKind.INSUFFICIENT_BALANCE,
    Phase.APPROVAL: ErrorKind.INSUFFICIENT_ALLOWANCE,
    Phase.SIMULATION: ErrorKind.SIMULATION_REVERTED,
    Phase.EXECUTION: ErrorKind.EXECUTION_REVERTED,
}

USER_REJECTION_CODES = {4001, "4001", "ACTION_REJECTED"}


class ErrorClassifier:
    """Map raw failures from wallets, RPC nodes and HTTP services to ``ErrorKind``."""

    def classify(self, exc: BaseException, phase: Phase = Phase.EXECUTION) -> ErrorKind:
        if isinstance(exc, SwapError):
            return exc.kind
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException, TimeExhausted)):
            return ErrorKind.NETWORK_TIMEOUT

        if self._is_user_rejection(exc):
            return ErrorKind.USER_REJECTED

        message = str(exc).lower()
        if "insufficient funds" in message or "insufficient balance" in message:
            return ErrorKind.INSUFFICIENT_BALANCE
        if "transfer amount exceeds allowance" in message or "insufficient allowance" in message:
            return ErrorKind.INSUFFICIENT_ALLOWANCE

        if isinstance(exc, ContractLogicError) or "execution reverted" in message or "revert" in message:
            if phase is Phase.SIMULATION:
                return ErrorKind.SIMULATION_REVERTED
            return ErrorKind.EXECUTION_REVERTED

        return _PHASE_DEFAULTS[phase]

    def to_swap_error(self, exc: BaseException, phase: Phase = Phase.EXECUTION) -> SwapError:
        if isinstance(exc, SwapError):
            return exc
        return SwapError(self.classify(exc, phase), str(exc) or type(exc).__name__)

    @staticmethod
    def _error_code(exc: BaseException) -> Any:
        code = getattr(exc, "code", None)
        if code is not None:
            return code
        nested = getattr(exc, "error", None)
        if isinstance(nested, dict):
            return nested.get("code")
        if nested is not None:
            return getattr(nested, "code", None)
        for arg in exc.args:
            if isinstance(arg, dict) and "code" in arg:
                return arg["code"]
        return None

    def _is_user_rejection(self, exc: BaseException) -> bool:
        if self._error_code(exc) in USER_REJECTION_CODES:
            return True
        message = str(exc).lower()
        return "user denied" in message or "user rejected" in message


classifier = ErrorClassifier()
