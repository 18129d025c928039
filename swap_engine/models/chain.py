"""Typed network models and default swap network registry."""

from __future__ import annotations

import re
from typing import Final
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

ADDRESS_REGEX: Final[re.Pattern[str]] = re.compile(r"^0x[a-fA-F0-9]{40}$")

NATIVE_PLACEHOLDER_ADDRESS: Final[str] = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"


class NetworkTokenConfig(BaseModel):
    """Static token entry shipped with a network."""

    symbol: str
    address: str
    decimals: int

    model_config = {
        "frozen": True,
    }

    @field_validator("address")
    @classmethod
    def validate_address(cls, value: str) -> str:
        if not ADDRESS_REGEX.match(value):
            raise ValueError(f"Invalid Ethereum address: {value}")
        return value


class NetworkConfig(BaseModel):
    """Runtime network configuration for V2-router swap operations."""

    name: str
    chain_id: int
    router: str
    factory: str
    native_symbol: str
    wrapped_native_symbol: str
    wrapped_native: str
    tokens: tuple[NetworkTokenConfig, ...] = ()
    explorer_base_url: str | None = None
    is_testnet: bool = False

    model_config = {
        "frozen": True,
    }

    @field_validator("router", "factory", "wrapped_native")
    @classmethod
    def validate_address(cls, value: str) -> str:
        if not ADDRESS_REGEX.match(value):
            raise ValueError(f"Invalid Ethereum address: {value}")
        return value

    @field_validator("explorer_base_url")
    @classmethod
    def validate_explorer_base_url(cls, value: str | None) -> str | None:
        if value is None:
            return value
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(f"Invalid explorer URL: {value}")
        return value.rstrip("/")

    def explorer_tx_url(self, tx_hash: str) -> str | None:
        if not self.explorer_base_url:
            return None
        return f"{self.explorer_base_url}/tx/{tx_hash}"


SWAP_NETWORK_CONFIGS: dict[str, NetworkConfig] = {
    "ethereum": NetworkConfig(
        name="ethereum",
        chain_id=1,
        router="0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
        factory="0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f",
        native_symbol="ETH",
        wrapped_native_symbol="WETH",
        wrapped_native="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        tokens=(
            NetworkTokenConfig(symbol="USDC", address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", decimals=6),
            NetworkTokenConfig(symbol="USDT", address="0xdAC17F958D2ee523a2206206994597C13D831ec7", decimals=6),
            NetworkTokenConfig(symbol="DAI", address="0x6B175474E89094C44Da98b954EedeAC495271d0F", decimals=18),
        ),
        explorer_base_url="https://etherscan.io",
    ),
    "sepolia": NetworkConfig(
        name="sepolia",
        chain_id=11155111,
        router="0xeE567Fe1712Faf6149d80dA1E6934E354124CfE3",
        factory="0xF62c03E08ada871A0bEb309762E260a7a6a880E6",
        native_symbol="ETH",
        wrapped_native_symbol="WETH",
        wrapped_native="0xfFf9976782d46CC05630D1f6eBAb18b2324d6B14",
        explorer_base_url="https://sepolia.etherscan.io",
        is_testnet=True,
    ),
    "polygon": NetworkConfig(
        name="polygon",
        chain_id=137,
        router="0xa5E0829CaCEd8fFDD4De3c43696c57F7D7A678ff",
        factory="0x5757371414417b8C6CAad45bAeF941aBc7d3Ab32",
        native_symbol="POL",
        wrapped_native_symbol="WMATIC",
        wrapped_native="0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",
        tokens=(
            NetworkTokenConfig(symbol="USDC", address="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359", decimals=6),
            NetworkTokenConfig(symbol="DAI", address="0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063", decimals=18),
        ),
        explorer_base_url="https://polygonscan.com",
    ),
}

NETWORK_KEY_BY_ID: dict[int, str] = {config.chain_id: key for key, config in SWAP_NETWORK_CONFIGS.items()}
