"""Token registry for a single network session."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from web3 import Web3

from swap_engine.models.chain import NATIVE_PLACEHOLDER_ADDRESS, NetworkConfig
from swap_engine.models.token import Token
from swap_engine.settings.config import ERC20_ABI
from swap_engine.logging import log


class TokenRegistryError(ValueError):
    """Raised for unknown tokens or an inconsistent registry."""


class TokenRegistry:
    """Symbol and address lookup with exactly one native and one wrapped-native token."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._by_symbol: dict[str, Token] = {}
        self._by_address: dict[str, Token] = {}
        for token in tokens:
            self._add(token)

        natives = [token for token in self._by_symbol.values() if token.is_native]
        wrapped = [token for token in self._by_symbol.values() if token.is_wrapped_native]
        if len(natives) != 1 or len(wrapped) != 1:
            raise TokenRegistryError(
                f"Registry needs exactly one native and one wrapped-native token "
                f"(got native={len(natives)} wrapped={len(wrapped)})"
            )
        self.native: Token = natives[0]
        self.wrapped_native: Token = wrapped[0]

    def _add(self, token: Token) -> None:
        key = token.symbol.upper()
        if key in self._by_symbol:
            raise TokenRegistryError(f"Duplicate token symbol {token.symbol}")
        self._by_symbol[key] = token
        self._by_address[token.address.lower()] = token

    @classmethod
    def for_network(cls, config: NetworkConfig) -> "TokenRegistry":
        tokens = [
            Token(symbol=config.native_symbol, address=NATIVE_PLACEHOLDER_ADDRESS, decimals=18, is_native=True),
            Token(
                symbol=config.wrapped_native_symbol,
                address=config.wrapped_native,
                decimals=18,
                is_wrapped_native=True,
            ),
        ]
        tokens.extend(
            Token(symbol=entry.symbol, address=entry.address, decimals=entry.decimals) for entry in config.tokens
        )
        return cls(tokens)

    @classmethod
    def from_mapping(
        cls,
        native_symbol: str,
        wrapped_symbol: str,
        tokens: Mapping[str, Mapping[str, Any]],
    ) -> "TokenRegistry":
        """Build from ``{symbol: {"address": ..., "decimals": ...}}``; the native entry may be omitted."""
        entries: list[Token] = []
        if native_symbol not in tokens:
            entries.append(Token(symbol=native_symbol, address=NATIVE_PLACEHOLDER_ADDRESS, decimals=18, is_native=True))
        for symbol, info in tokens.items():
            entries.append(
                Token(
                    symbol=symbol,
                    address=info.get("address") or NATIVE_PLACEHOLDER_ADDRESS,
                    decimals=int(info.get("decimals", 18)),
                    is_native=symbol == native_symbol,
                    is_wrapped_native=symbol == wrapped_symbol,
                )
            )
        return cls(entries)

    @property
    def hub(self) -> Token:
        return self.wrapped_native

    @property
    def tokens(self) -> list[Token]:
        return list(self._by_symbol.values())

    def get(self, symbol: str) -> Token:
        token = self._by_symbol.get(symbol.strip().upper())
        if token is None:
            raise TokenRegistryError(f"Unknown token: {symbol}")
        return token

    def by_address(self, address: str) -> Token:
        token = self._by_address.get(address.lower())
        if token is None:
            raise TokenRegistryError(f"Unknown token address: {address}")
        return token

    def __contains__(self, symbol: str) -> bool:
        return symbol.strip().upper() in self._by_symbol

    def pool_token(self, token: Token) -> Token:
        """Pools never hold the native currency; route through its wrapped form."""
        return self.wrapped_native if token.is_native else token

    async def register_from_chain(self, rpc, address: str) -> Token:
        """Read ``symbol``/``decimals`` from an ERC-20 contract and add it."""
        checksum = Web3.to_checksum_address(address)
        if checksum.lower() in self._by_address:
            return self._by_address[checksum.lower()]
        contract = rpc.contract(checksum, ERC20_ABI)
        symbol = str(await rpc.read(contract.functions.symbol(), label="symbol"))
        decimals = int(await rpc.read(contract.functions.decimals(), label="decimals"))
        token = Token(symbol=symbol, address=checksum, decimals=decimals)
        self._add(token)
        log.info(f"Registered token from chain symbol={symbol} address={checksum} decimals={decimals}")
        return token
