"""Manual swap CLI (explicit execution only).

Usage examples:
  python scripts/swap_cli.py --network sepolia --from ETH --to WETH --amount 0.01
  python scripts/swap_cli.py --from USDC --to ETH --amount 25 --slippage 0.5 --simulate
  python scripts/swap_cli.py --from ETH --to USDC --amount 0.05 --simulate --confirm
"""

import argparse
import asyncio
from decimal import Decimal, InvalidOperation

from swap_engine.clients.approval import ApprovalGate
from swap_engine.clients.execution import LocalAccountSigner, TransactionExecutor
from swap_engine.clients.gas import GasManager
from swap_engine.clients.quote import AmmQuoter
from swap_engine.clients.registry import TokenRegistry, TokenRegistryError
from swap_engine.clients.reserves import PairReserveOracle
from swap_engine.clients.routing import RouteResolver
from swap_engine.clients.rpc import RPC, RPCError
from swap_engine.clients.simulation import RpcSimulator, SimulationServiceClient
from swap_engine.clients.slippage import SlippageCalculator, tolerance_bps_from_percent
from swap_engine.clients.transactions import TransactionBuilder
from swap_engine.engine.controller import SimulationController
from swap_engine.engine.intent import IntentState
from swap_engine.errors import SwapError
from swap_engine.models.token import Token
from swap_engine.settings.config import settings


def _to_base_units(amount: str, token: Token) -> int:
    try:
        value = Decimal(amount)
    except InvalidOperation as exc:
        raise SystemExit(f"Invalid amount: {amount}") from exc
    return int(value.scaleb(token.decimals))


def _format_units(amount: int, token: Token) -> str:
    return f"{Decimal(amount).scaleb(-token.decimals).normalize()} {token.symbol}"


def _print_intent(intent) -> None:
    print(f"State: {intent.state.value}")
    if intent.quote:
        quote = intent.quote
        print(f"Route: {quote.route.describe()} ({quote.source.value})")
        print(f"Expected out: {_format_units(quote.amount_out, intent.token_out)}")
        print(f"Price impact: {quote.price_impact_bps / 100:.2f}%")
    if intent.bound:
        print(f"Minimum out: {_format_units(intent.bound.min_amount_out, intent.token_out)}")
    for warning in intent.warnings:
        print(f"Warning: {warning}")
    if intent.error_kind:
        print(f"Error: {intent.error_kind.value} ({intent.error_message})")
    if intent.receipt:
        print(f"Tx: {intent.receipt.tx_hash}")
        if intent.receipt.explorer_url:
            print(f"Explorer: {intent.receipt.explorer_url}")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Manual swap CLI")
    parser.add_argument("--network", default=settings.network, help="Network key (ethereum, sepolia, polygon)")
    parser.add_argument("--from", dest="token_in", required=True, help="Input token symbol")
    parser.add_argument("--to", dest="token_out", required=True, help="Output token symbol")
    parser.add_argument("--amount", required=True, help="Input amount in token units (e.g. 0.5)")
    parser.add_argument("--slippage", default=None, help="Slippage tolerance in percent (e.g. 0.5)")
    parser.add_argument("--simulate", action="store_true", help="Check approval and dry-run the transaction")
    parser.add_argument("--approve", action="store_true", help="Submit the approval transaction if one is required")
    parser.add_argument("--confirm", action="store_true", help="Execute the swap (must be set to broadcast)")
    args = parser.parse_args()

    settings.network = args.network
    network = settings.network_config()
    if not settings.eth_rpc_url:
        raise SystemExit("ETH_RPC_URL is required")
    if not settings.private_key:
        raise SystemExit("PRIVATE_KEY is required")

    try:
        rpc = RPC(settings.eth_rpc_url, timeout_seconds=settings.rpc_timeout_seconds)
    except RPCError as exc:
        raise SystemExit(str(exc)) from exc

    registry = TokenRegistry.for_network(network)
    try:
        token_in = registry.get(args.token_in)
        token_out = registry.get(args.token_out)
    except TokenRegistryError as exc:
        raise SystemExit(str(exc)) from exc

    slippage_bps = settings.default_slippage_bps
    if args.slippage is not None:
        try:
            slippage_bps = tolerance_bps_from_percent(args.slippage)
        except SwapError as exc:
            raise SystemExit(exc.message) from exc

    signer = LocalAccountSigner(settings.private_key)
    builder = TransactionBuilder(network.router, registry.wrapped_native, w3=rpc.w3)
    executor = TransactionExecutor(
        rpc,
        network,
        gas=GasManager(rpc, multiplier=settings.gas_multiplier),
        receipt_timeout_seconds=settings.receipt_timeout_seconds,
    )
    if settings.simulation_mode == "service" and settings.simulation_url:
        simulator = SimulationServiceClient(
            settings.simulation_url,
            api_key=settings.simulation_api_key,
            timeout_seconds=settings.simulation_timeout_seconds,
        )
    else:
        simulator = RpcSimulator(rpc)

    controller = SimulationController(
        resolver=RouteResolver(registry, AmmQuoter(PairReserveOracle(rpc, network.factory))),
        slippage=SlippageCalculator(deadline_seconds=settings.swap_deadline_seconds),
        builder=builder,
        approvals=ApprovalGate(rpc),
        simulator=simulator,
        executor=executor,
        signer=signer,
        chain_id=network.chain_id,
        debounce_seconds=0,
        slippage_bps=slippage_bps,
        price_impact_warn_bps=settings.price_impact_warn_bps,
        price_impact_block_bps=settings.price_impact_block_bps,
        fallback_policy=settings.fallback_quote_policy,
    )

    try:
        controller.update_inputs(token_in, token_out, _to_base_units(args.amount, token_in))
        intent = await controller.wait_for_quote()
        if intent.state is not IntentState.QUOTED or not (args.simulate or args.confirm):
            _print_intent(intent)
            return

        intent = await controller.prepare()
        if intent.state is IntentState.AWAITING_APPROVAL:
            if not args.approve:
                _print_intent(intent)
                print("Approval required; re-run with --approve to submit it.")
                return
            assert intent.approval_tx is not None
            try:
                receipt = await executor.execute(intent.approval_tx, signer)
            except SwapError as exc:
                print(f"Approval failed: {exc.kind.value} ({exc.message})")
                return
            print(f"Approval tx: {receipt.tx_hash}")
            intent = await controller.approval_settled()

        if intent.state is not IntentState.PREVIEW_READY or not args.confirm:
            _print_intent(intent)
            if intent.state is IntentState.PREVIEW_READY:
                print("Dry run only. Use --confirm to execute.")
            return

        intent = await controller.confirm()
        _print_intent(intent)
    finally:
        await controller.aclose()
        if isinstance(simulator, SimulationServiceClient):
            await simulator.close()


if __name__ == "__main__":
    asyncio.run(main())
