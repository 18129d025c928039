"""Constant-product quote math and reserve-backed quoting."""

from __future__ import annotations

from swap_engine.clients.reserves import ReserveOracle
from swap_engine.clients.rpc import RPCError
from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.swap import Quote, QuoteSource, Reserves, Route
from swap_engine.logging import log

FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1_000
BPS = 10_000
U32_MAX = 2**32 - 1


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_numerator: int = FEE_NUMERATOR,
    fee_denominator: int = FEE_DENOMINATOR,
) -> int:
    """Output of one pool edge, matching the pair contract's integer math.

    Python ints are unbounded, so ``amount_in * 997 * reserve_out`` cannot
    overflow, and ``//`` on non-negative operands truncates toward zero like
    EVM ``DIV``.
    """
    assert amount_in > 0, f"amount_in must be positive: {amount_in}"
    assert reserve_in > 0 and reserve_out > 0, f"reserves must be positive: ({reserve_in}, {reserve_out})"
    amount_in_with_fee = amount_in * fee_numerator
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * fee_denominator + amount_in_with_fee
    amount_out = numerator // denominator
    assert amount_out < reserve_out, "edge output must leave the pool non-empty"
    return amount_out


def price_impact_bps(amount_in: int, amount_out: int, reserves: list[Reserves]) -> int:
    """Deviation of the realized price from the pre-trade mid price, in bps.

    The mid price is the product of every edge's ``reserve_to / reserve_from``;
    for a single edge that is the pool spot price.
    """
    spot_num = 1
    spot_den = 1
    for snapshot in reserves:
        spot_num *= snapshot.reserve_to
        spot_den *= snapshot.reserve_from
    realized = (BPS * amount_out * spot_den) // (amount_in * spot_num)
    impact = BPS - realized
    return min(max(impact, 0), U32_MAX)


class QuoteError(SwapError):
    """Raised when a route cannot be quoted."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.ROUTE_UNAVAILABLE, message)


class AmmQuoter:
    """Quote a route by visiting each pool edge in order."""

    def __init__(self, oracle: ReserveOracle) -> None:
        self.oracle = oracle

    async def quote(self, route: Route, amount_in: int) -> Quote:
        if amount_in <= 0:
            raise QuoteError(f"amount_in must be positive, got {amount_in}")

        if route.is_conversion:
            return Quote(
                route=route,
                amount_in=amount_in,
                amount_out=amount_in,
                price_impact_bps=0,
                source=QuoteSource.ONCHAIN,
                hop_amounts=(amount_in, amount_in),
            )

        snapshots: list[Reserves] = []
        amounts = [amount_in]
        current = amount_in
        for token_in, token_out in route.edges:
            try:
                reserves = await self.oracle.get_reserves(token_in, token_out)
            except SwapError as exc:
                # A timed-out read only disqualifies this candidate
                raise QuoteError(f"reserves for {token_in.symbol}/{token_out.symbol}: {exc.message}") from exc
            except RPCError as exc:
                raise QuoteError(str(exc)) from exc

            if reserves.is_empty:
                raise QuoteError(f"no liquidity on edge {token_in.symbol}/{token_out.symbol}")

            current = get_amount_out(current, reserves.reserve_from, reserves.reserve_to)
            if current <= 0:
                raise QuoteError(f"edge {token_in.symbol}/{token_out.symbol} rounds output to zero")
            snapshots.append(reserves)
            amounts.append(current)

        impact = price_impact_bps(amount_in, current, snapshots)
        quote = Quote(
            route=route,
            amount_in=amount_in,
            amount_out=current,
            price_impact_bps=impact,
            source=QuoteSource.ONCHAIN,
            hop_amounts=tuple(amounts),
            observed_at=min(snapshot.observed_at for snapshot in snapshots),
        )
        log.debug(
            f"Quoted route={route.describe()} amount_in={amount_in} "
            f"amount_out={current} impact_bps={impact}"
        )
        return quote
