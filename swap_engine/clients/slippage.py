"""Slippage utilities."""

from __future__ import annotations

import time
from decimal import Decimal, InvalidOperation
from typing import Callable

from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.swap import Quote, SlippageBound

BPS = 10_000
DEFAULT_DEADLINE_SECONDS = 1_200


class SlippageError(SwapError):
    """Raised when invalid slippage values are supplied."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.INVALID_TOLERANCE, message)


def calculate_min_out(expected_out: int, slippage_bps: int) -> int:
    """Return minimum acceptable output amount using basis-points slippage."""
    if expected_out < 0:
        raise SlippageError("expected_out must be non-negative")
    if slippage_bps < 0 or slippage_bps > BPS:
        raise SlippageError("slippage_bps must be in [0, 10000]")

    return max(expected_out - (expected_out * slippage_bps // BPS), 0)


def tolerance_bps_from_percent(percent: str | float) -> int:
    """Convert a percent value such as ``"0.5"`` into basis points (50)."""
    try:
        value = Decimal(str(percent).strip())
    except InvalidOperation as exc:
        raise SlippageError(f"invalid slippage percent: {percent!r}") from exc
    if not value.is_finite():
        raise SlippageError(f"invalid slippage percent: {percent!r}")
    return int(value * 100)


class SlippageCalculator:
    def __init__(
        self,
        deadline_seconds: int = DEFAULT_DEADLINE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.deadline_seconds = int(deadline_seconds)
        self.clock = clock

    def bound(self, quote: Quote, tolerance_bps: int) -> SlippageBound:
        return SlippageBound(
            min_amount_out=calculate_min_out(quote.amount_out, tolerance_bps),
            deadline=int(self.clock()) + self.deadline_seconds,
        )
