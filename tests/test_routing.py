from __future__ import annotations

from types import SimpleNamespace

import pytest

from conftest import DAI, ETH, USDC, WETH
from swap_engine.clients.quote import AmmQuoter
from swap_engine.clients.reserves import ReserveOracle
from swap_engine.clients.routing import RouteResolver
from swap_engine.clients.rpc import RPC
from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.swap import QuoteSource, SwapKind


@pytest.fixture
def resolver(registry, oracle) -> RouteResolver:
    return RouteResolver(registry, AmmQuoter(oracle))


def _hops(route) -> list[str]:
    return [token.symbol for token in route.hops]


def test_same_token_is_invalid_pair(resolver):
    with pytest.raises(SwapError) as excinfo:
        resolver.candidates(USDC, USDC)
    assert excinfo.value.kind is ErrorKind.INVALID_PAIR


@pytest.mark.parametrize("token_in,token_out,kind", [(ETH, WETH, SwapKind.WRAP), (WETH, ETH, SwapKind.UNWRAP)])
def test_native_wrapped_pair_is_a_single_conversion_route(resolver, token_in, token_out, kind):
    routes = resolver.candidates(token_in, token_out)
    assert len(routes) == 1
    assert routes[0].kind is kind
    assert routes[0].is_conversion


def test_token_pair_candidates_direct_then_via_hub(resolver):
    routes = resolver.candidates(USDC, DAI)
    assert [_hops(route) for route in routes] == [["USDC", "DAI"], ["USDC", "WETH", "DAI"]]


def test_native_side_maps_to_wrapped_pool_token_without_hub_hop(resolver):
    routes = resolver.candidates(ETH, USDC)
    assert [_hops(route) for route in routes] == [["WETH", "USDC"]]
    assert routes[0].kind is SwapKind.NATIVE_IN
    assert routes[0].token_in is ETH


def test_hub_endpoint_skips_two_hop_candidate(resolver):
    routes = resolver.candidates(DAI, WETH)
    assert [_hops(route) for route in routes] == [["DAI", "WETH"]]


@pytest.mark.asyncio
async def test_direct_route_wins_when_both_are_valid(resolver, oracle):
    oracle.add_pool(USDC, DAI, 1_000_000 * 10**6, 1_000_000 * 10**18)
    # The hub path would pay more, but priority is fixed
    oracle.add_pool(USDC, WETH, 1_000_000 * 10**6, 1_000 * 10**18)
    oracle.add_pool(WETH, DAI, 1_000 * 10**18, 2_000_000 * 10**18)

    quote = await resolver.resolve(USDC, DAI, 1_000 * 10**6)

    assert _hops(quote.route) == ["USDC", "DAI"]
    assert oracle.calls == [("USDC", "DAI")]


@pytest.mark.asyncio
async def test_falls_through_to_hub_route_when_direct_pool_is_empty(resolver, oracle):
    oracle.add_pool(USDC, WETH, 1_000_000 * 10**6, 400 * 10**18)
    oracle.add_pool(WETH, DAI, 400 * 10**18, 1_000_000 * 10**18)

    quote = await resolver.resolve(USDC, DAI, 100 * 10**6)

    assert _hops(quote.route) == ["USDC", "WETH", "DAI"]
    assert quote.source is QuoteSource.ONCHAIN
    assert quote.amount_out > 0


@pytest.mark.asyncio
async def test_timed_out_direct_read_tries_next_candidate(resolver, oracle):
    oracle.time_out(USDC, DAI)
    oracle.add_pool(USDC, WETH, 1_000_000 * 10**6, 400 * 10**18)
    oracle.add_pool(WETH, DAI, 400 * 10**18, 1_000_000 * 10**18)

    quote = await resolver.resolve(USDC, DAI, 100 * 10**6)

    assert _hops(quote.route) == ["USDC", "WETH", "DAI"]


@pytest.mark.asyncio
async def test_price_fallback_is_tagged(resolver):
    quote = await resolver.resolve(USDC, DAI, 250 * 10**6, unit_price_usd={"USDC": 1.0, "DAI": 0.5})

    assert quote.source is QuoteSource.PRICE_FALLBACK
    assert not quote.is_tradable
    assert quote.amount_out == 500 * 10**18
    assert _hops(quote.route) == ["USDC", "DAI"]


@pytest.mark.asyncio
async def test_no_liquidity_and_no_prices(resolver, oracle):
    with pytest.raises(SwapError) as excinfo:
        await resolver.resolve(USDC, DAI, 1_000 * 10**6)
    assert excinfo.value.kind is ErrorKind.NO_ROUTE_AND_NO_PRICE_DATA
    assert len(oracle.calls) == 2


@pytest.mark.asyncio
async def test_partial_price_data_is_not_enough(resolver):
    with pytest.raises(SwapError) as excinfo:
        await resolver.resolve(USDC, DAI, 1_000 * 10**6, unit_price_usd={"USDC": 1.0})
    assert excinfo.value.kind is ErrorKind.NO_ROUTE_AND_NO_PRICE_DATA


class _FlakyEth:
    """Node whose first block-number read drops the connection."""

    def __init__(self) -> None:
        self.reads = 0

    @property
    def block_number(self) -> int:
        self.reads += 1
        if self.reads == 1:
            raise ConnectionError("connection reset by peer")
        return 19_000_000


class _NodeBackedOracle(ReserveOracle):
    """Pins each reserve read to the node's current block before serving it."""

    def __init__(self, rpc: RPC, inner) -> None:
        self.rpc = rpc
        self.inner = inner

    async def get_reserves(self, token_in, token_out):
        await self.rpc.block_number()
        return await self.inner.get_reserves(token_in, token_out)


@pytest.mark.asyncio
async def test_raw_node_error_on_direct_read_tries_next_candidate(registry, oracle):
    oracle.add_pool(USDC, DAI, 1_000_000 * 10**6, 1_000_000 * 10**18)
    oracle.add_pool(USDC, WETH, 1_000_000 * 10**6, 400 * 10**18)
    oracle.add_pool(WETH, DAI, 400 * 10**18, 1_000_000 * 10**18)
    rpc = RPC("http://dummy", w3=SimpleNamespace(eth=_FlakyEth(), is_connected=lambda: True))
    resolver = RouteResolver(registry, AmmQuoter(_NodeBackedOracle(rpc, oracle)))

    quote = await resolver.resolve(USDC, DAI, 100 * 10**6)

    assert _hops(quote.route) == ["USDC", "WETH", "DAI"]
    assert quote.source is QuoteSource.ONCHAIN
    assert oracle.calls == [("USDC", "WETH"), ("WETH", "DAI")]
