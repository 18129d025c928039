"""Swap intent lifecycle object and execution guard."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from swap_engine.errors import ConcurrentExecutionError, ErrorKind
from swap_engine.models.swap import ExecutionReceipt, Quote, SlippageBound, UnsignedTx
from swap_engine.models.token import Token


class IntentState(str, Enum):
    IDLE = "Idle"
    QUOTING = "Quoting"
    QUOTED = "Quoted"
    AWAITING_APPROVAL = "AwaitingApproval"
    SIMULATING = "Simulating"
    PREVIEW_READY = "PreviewReady"
    EXECUTING = "Executing"
    SETTLED = "Settled"
    FAILED = "Failed"
    CANCELLED = "Cancelled"


PRE_EXECUTION_STATES = frozenset(
    {
        IntentState.IDLE,
        IntentState.QUOTING,
        IntentState.QUOTED,
        IntentState.AWAITING_APPROVAL,
        IntentState.SIMULATING,
        IntentState.PREVIEW_READY,
    }
)
TERMINAL_STATES = frozenset({IntentState.SETTLED, IntentState.FAILED, IntentState.CANCELLED})


class InvalidTransitionError(RuntimeError):
    """Raised when an operation is requested from a state that does not allow it."""


@dataclass
class SwapIntent:
    """The single live swap attempt of a session.

    Every input change creates a new intent with a higher ``generation``;
    async work started for an older generation is ignored on completion.
    """

    generation: int
    token_in: Optional[Token] = None
    token_out: Optional[Token] = None
    amount_in: int = 0
    owner: Optional[str] = None
    recipient: Optional[str] = None
    slippage_bps: int = 50
    state: IntentState = IntentState.IDLE
    quote: Optional[Quote] = None
    bound: Optional[SlippageBound] = None
    unsigned_tx: Optional[UnsignedTx] = None
    approval_tx: Optional[UnsignedTx] = None
    simulation: Optional[object] = None
    tx_hash: Optional[str] = None
    receipt: Optional[ExecutionReceipt] = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def pair_label(self) -> str:
        if self.token_in is None or self.token_out is None:
            return "-"
        return f"{self.token_in.symbol}->{self.token_out.symbol}"

    def require(self, *states: IntentState) -> None:
        if self.state not in states:
            expected = ", ".join(state.value for state in states)
            raise InvalidTransitionError(f"intent is {self.state.value}; expected one of: {expected}")


class ExecutionGuard:
    """Refuse a second in-flight execution for the same owner and token pair."""

    def __init__(self) -> None:
        self._pending: set[tuple[str, str, str]] = set()

    @staticmethod
    def key(owner: str, token_in: Token, token_out: Token) -> tuple[str, str, str]:
        return (owner.lower(), token_in.address.lower(), token_out.address.lower())

    def is_pending(self, owner: str, token_in: Token, token_out: Token) -> bool:
        return self.key(owner, token_in, token_out) in self._pending

    @contextmanager
    def hold(self, owner: str, token_in: Token, token_out: Token) -> Iterator[None]:
        key = self.key(owner, token_in, token_out)
        if key in self._pending:
            raise ConcurrentExecutionError(
                f"execution already pending for {owner} {token_in.symbol}->{token_out.symbol}"
            )
        self._pending.add(key)
        try:
            yield
        finally:
            self._pending.discard(key)


execution_guard = ExecutionGuard()
