"""On-chain and HTTP clients used by the swap engine."""

from swap_engine.clients.approval import ApprovalGate
from swap_engine.clients.execution import LocalAccountSigner, TransactionExecutor
from swap_engine.clients.fallback import PriceFallbackEstimator
from swap_engine.clients.gas import GasManager, GasQuote
from swap_engine.clients.quote import AmmQuoter, QuoteError, get_amount_out
from swap_engine.clients.registry import TokenRegistry, TokenRegistryError
from swap_engine.clients.reserves import PairReserveOracle, ReserveOracle
from swap_engine.clients.routing import RouteResolver
from swap_engine.clients.rpc import RPC, RPCError
from swap_engine.clients.simulation import RpcSimulator, SimulationReport, SimulationServiceClient
from swap_engine.clients.slippage import SlippageCalculator, SlippageError, calculate_min_out
from swap_engine.clients.transactions import TransactionBuilder

__all__ = [
    "ApprovalGate",
    "LocalAccountSigner",
    "TransactionExecutor",
    "PriceFallbackEstimator",
    "GasManager",
    "GasQuote",
    "AmmQuoter",
    "QuoteError",
    "get_amount_out",
    "TokenRegistry",
    "TokenRegistryError",
    "PairReserveOracle",
    "ReserveOracle",
    "RouteResolver",
    "RPC",
    "RPCError",
    "RpcSimulator",
    "SimulationReport",
    "SimulationServiceClient",
    "SlippageCalculator",
    "SlippageError",
    "calculate_min_out",
    "TransactionBuilder",
]
