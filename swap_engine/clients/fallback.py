"""Price-based output estimates for pairs without a usable pool route."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Mapping

from swap_engine.models.token import Token
from swap_engine.logging import log


class PriceFallbackEstimator:
    """Estimate ``amount_out`` from independently known USD unit prices.

    The result is informational only: it is never what a pool would pay.
    """

    @staticmethod
    def _price(unit_price_usd: Mapping[str, float], token: Token) -> Decimal | None:
        raw = unit_price_usd.get(token.symbol)
        if raw is None:
            raw = unit_price_usd.get(token.symbol.upper())
        if raw is None:
            return None
        try:
            price = Decimal(str(raw))
        except InvalidOperation:
            return None
        if not price.is_finite() or price <= 0:
            return None
        return price

    def estimate(
        self,
        token_in: Token,
        token_out: Token,
        amount_in: int,
        unit_price_usd: Mapping[str, float],
    ) -> int | None:
        price_in = self._price(unit_price_usd, token_in)
        price_out = self._price(unit_price_usd, token_out)
        if price_in is None or price_out is None:
            log.debug(f"No price data for {token_in.symbol}/{token_out.symbol}; fallback unavailable")
            return None

        with localcontext() as ctx:
            # uint256 amounts need 78 significant digits
            ctx.prec = 96
            scale = Decimal(10) ** (token_out.decimals - token_in.decimals)
            estimate = Decimal(amount_in) * price_in / price_out * scale
            amount_out = int(estimate.to_integral_value(rounding=ROUND_DOWN))
        log.warning(
            f"Using price-based estimate for {token_in.symbol}->{token_out.symbol} "
            f"amount_in={amount_in} amount_out~{amount_out}"
        )
        return amount_out
