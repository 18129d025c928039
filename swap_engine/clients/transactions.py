"""Router, wrapped-native and ERC-20 call encoding."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from web3 import Web3

from swap_engine.errors import ErrorKind, SwapError
from swap_engine.models.swap import Route, SlippageBound, SwapKind, UnsignedTx
from swap_engine.models.token import Token
from swap_engine.settings.config import ERC20_ABI, V2_ROUTER_ABI, WRAPPED_NATIVE_ABI

if TYPE_CHECKING:
    from swap_engine.engine.intent import SwapIntent

DEPOSIT_SELECTOR = "0xd0e30db0"
WITHDRAW_SELECTOR = "0x2e1a7d4d"
SWAP_EXACT_ETH_FOR_TOKENS_SELECTOR = "0x7ff36ab5"
SWAP_EXACT_TOKENS_FOR_ETH_SELECTOR = "0x18cbafe5"
SWAP_EXACT_TOKENS_FOR_TOKENS_SELECTOR = "0x38ed1739"
APPROVE_SELECTOR = "0x095ea7b3"
TRANSFER_SELECTOR = "0xa9059cbb"

CONVERSION_GAS_HINT = 60_000
SWAP_GAS_HINT = 200_000
EXTRA_HOP_GAS_HINT = 100_000
APPROVAL_GAS_HINT = 80_000


def encode_call(contract, fn_name: str, args: list[Any]) -> str:
    if hasattr(contract, "encode_abi"):
        return contract.encode_abi(fn_name, args=args)
    return contract.encodeABI(fn_name=fn_name, args=args)


class TransactionBuilder:
    """Turn a quoted, bounded intent into exactly one unsigned call."""

    def __init__(self, router_address: str, wrapped_native: Token, w3: Web3 | None = None) -> None:
        # Encoding needs no provider
        self.w3 = w3 or Web3()
        self.router_address = Web3.to_checksum_address(router_address)
        self.wrapped_native = wrapped_native
        self.router = self.w3.eth.contract(address=self.router_address, abi=V2_ROUTER_ABI)
        self.wrapper = self.w3.eth.contract(address=wrapped_native.address, abi=WRAPPED_NATIVE_ABI)
        self._encoders: dict[SwapKind, Callable[[Route, int, SlippageBound, str], UnsignedTx]] = {
            SwapKind.WRAP: self._wrap,
            SwapKind.UNWRAP: self._unwrap,
            SwapKind.NATIVE_IN: self._native_in,
            SwapKind.NATIVE_OUT: self._native_out,
            SwapKind.TOKEN_TO_TOKEN: self._token_to_token,
        }

    def build(self, intent: "SwapIntent") -> UnsignedTx:
        if intent.quote is None or intent.bound is None:
            raise SwapError(ErrorKind.UNSUPPORTED_ROUTE_SHAPE, "intent has no quote or slippage bound")
        if not intent.recipient:
            raise SwapError(ErrorKind.UNSUPPORTED_ROUTE_SHAPE, "intent has no recipient")
        return self.build_swap(intent.quote.route, intent.quote.amount_in, intent.bound, intent.recipient)

    def build_swap(self, route: Route, amount_in: int, bound: SlippageBound, recipient: str) -> UnsignedTx:
        encoder = self._encoders.get(route.kind)
        if encoder is None:
            raise SwapError(ErrorKind.UNSUPPORTED_ROUTE_SHAPE, f"no encoder for {route.kind}")
        return encoder(route, int(amount_in), bound, Web3.to_checksum_address(recipient))

    def build_approval(self, token: Token, spender: str, amount: int) -> UnsignedTx:
        if token.is_native:
            raise SwapError(ErrorKind.UNSUPPORTED_ROUTE_SHAPE, "native currency has no allowance")
        contract = self.w3.eth.contract(address=token.address, abi=ERC20_ABI)
        data = encode_call(contract, "approve", [Web3.to_checksum_address(spender), int(amount)])
        return UnsignedTx(to=token.address, data=data, value=0, gas_hint=APPROVAL_GAS_HINT)

    def _require(self, condition: bool, route: Route, reason: str) -> None:
        if not condition:
            raise SwapError(
                ErrorKind.UNSUPPORTED_ROUTE_SHAPE,
                f"{route.kind.value} route {route.describe()}: {reason}",
            )

    def _swap_gas(self, route: Route) -> int:
        return SWAP_GAS_HINT + EXTRA_HOP_GAS_HINT * (len(route.hops) - 2)

    def _wrap(self, route: Route, amount_in: int, bound: SlippageBound, recipient: str) -> UnsignedTx:
        self._require(route.hops[1].same_as(self.wrapped_native), route, "wrap target is not the wrapped native token")
        data = encode_call(self.wrapper, "deposit", [])
        return UnsignedTx(to=self.wrapped_native.address, data=data, value=amount_in, gas_hint=CONVERSION_GAS_HINT)

    def _unwrap(self, route: Route, amount_in: int, bound: SlippageBound, recipient: str) -> UnsignedTx:
        self._require(route.hops[0].same_as(self.wrapped_native), route, "unwrap source is not the wrapped native token")
        data = encode_call(self.wrapper, "withdraw", [amount_in])
        return UnsignedTx(to=self.wrapped_native.address, data=data, value=0, gas_hint=CONVERSION_GAS_HINT)

    def _native_in(self, route: Route, amount_in: int, bound: SlippageBound, recipient: str) -> UnsignedTx:
        self._require(route.hops[0].same_as(self.wrapped_native), route, "path must start at the wrapped native token")
        data = encode_call(
            self.router,
            "swapExactETHForTokens",
            [bound.min_amount_out, route.path, recipient, bound.deadline],
        )
        return UnsignedTx(to=self.router_address, data=data, value=amount_in, gas_hint=self._swap_gas(route))

    def _native_out(self, route: Route, amount_in: int, bound: SlippageBound, recipient: str) -> UnsignedTx:
        self._require(route.hops[-1].same_as(self.wrapped_native), route, "path must end at the wrapped native token")
        data = encode_call(
            self.router,
            "swapExactTokensForETH",
            [amount_in, bound.min_amount_out, route.path, recipient, bound.deadline],
        )
        return UnsignedTx(to=self.router_address, data=data, value=0, gas_hint=self._swap_gas(route))

    def _token_to_token(self, route: Route, amount_in: int, bound: SlippageBound, recipient: str) -> UnsignedTx:
        self._require(not any(token.is_native for token in route.hops), route, "native currency cannot sit in a pool path")
        data = encode_call(
            self.router,
            "swapExactTokensForTokens",
            [amount_in, bound.min_amount_out, route.path, recipient, bound.deadline],
        )
        return UnsignedTx(to=self.router_address, data=data, value=0, gas_hint=self._swap_gas(route))
