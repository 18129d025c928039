"""Domain models for networks, tokens and swap plans."""

from swap_engine.models.chain import NATIVE_PLACEHOLDER_ADDRESS, NetworkConfig, NetworkTokenConfig
from swap_engine.models.swap import (
    ExecutionReceipt,
    Quote,
    QuoteSource,
    Reserves,
    Route,
    SlippageBound,
    SwapKind,
    UnsignedTx,
    swap_kind_for,
)
from swap_engine.models.token import Token

__all__ = [
    "NATIVE_PLACEHOLDER_ADDRESS",
    "NetworkConfig",
    "NetworkTokenConfig",
    "ExecutionReceipt",
    "Quote",
    "QuoteSource",
    "Reserves",
    "Route",
    "SlippageBound",
    "SwapKind",
    "UnsignedTx",
    "swap_kind_for",
    "Token",
]
