"""Candidate route enumeration and first-valid-quote selection.

The resolver is correctness-first, not best-price-first: candidates are
tried in a fixed priority order (direct edge, then via the hub token) and
the first one that quotes successfully wins, even if a later candidate
would pay more.
"""

from __future__ import annotations

from typing import Mapping

from swap_engine.clients.fallback import PriceFallbackEstimator
from swap_engine.clients.quote import AmmQuoter
from swap_engine.clients.registry import TokenRegistry
from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.swap import Quote, QuoteSource, Route, SwapKind, swap_kind_for
from swap_engine.models.token import Token
from swap_engine.logging import log


class RouteResolver:
    def __init__(
        self,
        registry: TokenRegistry,
        quoter: AmmQuoter,
        fallback: PriceFallbackEstimator | None = None,
    ) -> None:
        self.registry = registry
        self.quoter = quoter
        self.fallback = fallback or PriceFallbackEstimator()

    def candidates(self, token_in: Token, token_out: Token, hub: Token | None = None) -> list[Route]:
        if token_in.same_as(token_out):
            raise SwapError(ErrorKind.INVALID_PAIR, f"cannot swap {token_in.symbol} for itself")

        kind = swap_kind_for(token_in, token_out)
        if kind in (SwapKind.WRAP, SwapKind.UNWRAP):
            return [Route(token_in=token_in, token_out=token_out, hops=(token_in, token_out), kind=kind)]

        hub = hub or self.registry.hub
        pool_in = self.registry.pool_token(token_in)
        pool_out = self.registry.pool_token(token_out)

        shapes: list[tuple[Token, ...]] = [(pool_in, pool_out)]
        if not pool_in.same_as(hub) and not pool_out.same_as(hub):
            shapes.append((pool_in, hub, pool_out))

        routes: list[Route] = []
        for hops in shapes:
            if hops[0].same_as(hops[-1]):
                continue
            routes.append(Route(token_in=token_in, token_out=token_out, hops=hops, kind=kind))
        return routes

    async def resolve(
        self,
        token_in: Token,
        token_out: Token,
        amount_in: int,
        unit_price_usd: Mapping[str, float] | None = None,
    ) -> Quote:
        candidates = self.candidates(token_in, token_out)
        for route in candidates:
            try:
                quote = await self.quoter.quote(route, amount_in)
            except SwapError as exc:
                if exc.kind is not ErrorKind.ROUTE_UNAVAILABLE:
                    raise
                log.debug(f"Route {route.describe()} unavailable: {exc.message}")
                continue
            log.info(
                f"Selected route={route.describe()} amount_in={amount_in} "
                f"amount_out={quote.amount_out} impact_bps={quote.price_impact_bps}"
            )
            return quote

        estimate = None
        if unit_price_usd:
            estimate = self.fallback.estimate(token_in, token_out, amount_in, unit_price_usd)
        if estimate is None or not candidates:
            raise SwapError(
                ErrorKind.NO_ROUTE_AND_NO_PRICE_DATA,
                f"no pool route and no price data for {token_in.symbol}->{token_out.symbol}",
            )
        return Quote(
            route=candidates[0],
            amount_in=amount_in,
            amount_out=estimate,
            price_impact_bps=0,
            source=QuoteSource.PRICE_FALLBACK,
        )
