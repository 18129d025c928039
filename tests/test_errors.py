from __future__ import annotations

import asyncio

import httpx
import pytest
from web3.exceptions import ContractLogicError

from swap_engine.errors import ErrorKind, Phase, SwapError, classifier


class _WalletError(Exception):
    def __init__(self, message: str, code) -> None:
        super().__init__(message)
        self.code = code


def test_swap_error_keeps_its_kind():
    assert classifier.classify(SwapError(ErrorKind.INVALID_PAIR), Phase.EXECUTION) is ErrorKind.INVALID_PAIR


@pytest.mark.parametrize(
    "exc",
    [asyncio.TimeoutError(), TimeoutError("read timed out"), httpx.ReadTimeout("slow")],
)
def test_timeouts(exc):
    assert classifier.classify(exc, Phase.SIMULATION) is ErrorKind.NETWORK_TIMEOUT


@pytest.mark.parametrize(
    "exc",
    [
        _WalletError("MetaMask Tx Signature: User denied transaction signature.", 4001),
        _WalletError("rejected", "ACTION_REJECTED"),
        ValueError({"code": 4001, "message": "User rejected the request."}),
        RuntimeError("user rejected transaction"),
    ],
)
def test_user_rejection_is_not_a_revert(exc):
    assert classifier.classify(exc, Phase.EXECUTION) is ErrorKind.USER_REJECTED


def test_revert_depends_on_phase():
    exc = ContractLogicError("execution reverted: UniswapV2Router: INSUFFICIENT_OUTPUT_AMOUNT")
    assert classifier.classify(exc, Phase.SIMULATION) is ErrorKind.SIMULATION_REVERTED
    assert classifier.classify(exc, Phase.EXECUTION) is ErrorKind.EXECUTION_REVERTED


def test_balance_and_allowance_messages():
    assert (
        classifier.classify(ValueError("insufficient funds for gas * price + value"), Phase.EXECUTION)
        is ErrorKind.INSUFFICIENT_BALANCE
    )
    assert (
        classifier.classify(ValueError("execution reverted: TransferHelper: ERC20: transfer amount exceeds allowance"), Phase.SIMULATION)
        is ErrorKind.INSUFFICIENT_ALLOWANCE
    )


def test_unknown_failure_uses_phase_default():
    assert classifier.classify(RuntimeError("boom"), Phase.QUOTING) is ErrorKind.ROUTE_UNAVAILABLE
    assert classifier.classify(RuntimeError("boom"), Phase.EXECUTION) is ErrorKind.EXECUTION_REVERTED
    assert classifier.classify(ConnectionError("node dropped"), Phase.BALANCE) is ErrorKind.INSUFFICIENT_BALANCE
    assert classifier.classify(ConnectionError("node dropped"), Phase.APPROVAL) is ErrorKind.INSUFFICIENT_ALLOWANCE


def test_to_swap_error_wraps_raw_exceptions():
    error = classifier.to_swap_error(RuntimeError("node said no"), Phase.SIMULATION)
    assert isinstance(error, SwapError)
    assert error.kind is ErrorKind.SIMULATION_REVERTED
    assert error.message == "node said no"
