"""
Configuration management for the swap engine.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from swap_engine.models.chain import NETWORK_KEY_BY_ID, SWAP_NETWORK_CONFIGS, NetworkConfig

PROJECT_ROOT = Path(__file__).resolve().parents[2]

env_file = Path(".env")
if env_file.exists():
    load_dotenv(env_file, override=False)
else:
    load_dotenv(PROJECT_ROOT / ".env", override=False)

NETWORK_CONFIGS: dict[str, NetworkConfig] = SWAP_NETWORK_CONFIGS
NETWORK_BY_ID: dict[int, str] = dict(NETWORK_KEY_BY_ID)


def get_network_config(network: str | int | None) -> NetworkConfig | None:
    """Return network configuration by name or chain id."""
    if network is None:
        return None
    if isinstance(network, int):
        key = NETWORK_BY_ID.get(network)
        return NETWORK_CONFIGS.get(key) if key else None
    return NETWORK_CONFIGS.get(network.strip().lower())


def _fn(name: str, inputs: list[tuple[str, str]], outputs: list[str], mutability: str) -> dict[str, Any]:
    return {
        "inputs": [{"internalType": kind, "name": arg, "type": kind} for arg, kind in inputs],
        "name": name,
        "outputs": [{"internalType": kind, "name": "", "type": kind} for kind in outputs],
        "stateMutability": mutability,
        "type": "function",
    }


V2_ROUTER_ABI: list[dict[str, Any]] = [
    _fn(
        "swapExactTokensForTokens",
        [("amountIn", "uint256"), ("amountOutMin", "uint256"), ("path", "address[]"), ("to", "address"), ("deadline", "uint256")],
        ["uint256[]"],
        "nonpayable",
    ),
    _fn(
        "swapExactETHForTokens",
        [("amountOutMin", "uint256"), ("path", "address[]"), ("to", "address"), ("deadline", "uint256")],
        ["uint256[]"],
        "payable",
    ),
    _fn(
        "swapExactTokensForETH",
        [("amountIn", "uint256"), ("amountOutMin", "uint256"), ("path", "address[]"), ("to", "address"), ("deadline", "uint256")],
        ["uint256[]"],
        "nonpayable",
    ),
]

V2_FACTORY_ABI: list[dict[str, Any]] = [
    _fn("getPair", [("tokenA", "address"), ("tokenB", "address")], ["address"], "view"),
]

V2_PAIR_ABI: list[dict[str, Any]] = [
    _fn("getReserves", [], ["uint112", "uint112", "uint32"], "view"),
    _fn("token0", [], ["address"], "view"),
]

ERC20_ABI: list[dict[str, Any]] = [
    _fn("allowance", [("owner", "address"), ("spender", "address")], ["uint256"], "view"),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], ["bool"], "nonpayable"),
    _fn("balanceOf", [("account", "address")], ["uint256"], "view"),
    _fn("decimals", [], ["uint8"], "view"),
    _fn("symbol", [], ["string"], "view"),
]

WRAPPED_NATIVE_ABI: list[dict[str, Any]] = [
    _fn("deposit", [], [], "payable"),
    _fn("withdraw", [("wad", "uint256")], [], "nonpayable"),
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        extra="ignore",
        env_ignore_empty=True,
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
    )

    app_name: str = "Swap Engine"
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")

    # Network
    network: str = Field(default="ethereum", validation_alias="SWAP_NETWORK")
    eth_rpc_url: Optional[str] = Field(default=None, validation_alias="ETH_RPC_URL")
    private_key: Optional[str] = Field(default=None, validation_alias="PRIVATE_KEY")
    wallet_address: Optional[str] = Field(default=None, validation_alias="WALLET_ADDRESS")

    # Timing
    rpc_timeout_seconds: float = Field(default=10.0, validation_alias="RPC_TIMEOUT_SECONDS")
    receipt_timeout_seconds: float = Field(default=180.0, validation_alias="RECEIPT_TIMEOUT_SECONDS")
    quote_debounce_ms: int = Field(default=500, validation_alias="QUOTE_DEBOUNCE_MS")
    swap_deadline_seconds: int = Field(default=1200, validation_alias="SWAP_DEADLINE_SECONDS")

    # Trading
    default_slippage_bps: int = Field(default=50, validation_alias="DEFAULT_SLIPPAGE_BPS")
    price_impact_warn_bps: int = Field(default=300, validation_alias="PRICE_IMPACT_WARN_BPS")
    price_impact_block_bps: int = Field(default=1500, validation_alias="PRICE_IMPACT_BLOCK_BPS")
    fallback_quote_policy: Literal["block", "warn"] = Field(default="block", validation_alias="FALLBACK_QUOTE_POLICY")
    gas_multiplier: float = Field(default=1.15, validation_alias="GAS_MULTIPLIER")

    # Simulation
    simulation_mode: Literal["rpc", "service"] = Field(default="rpc", validation_alias="SIMULATION_MODE")
    simulation_url: Optional[str] = Field(default=None, validation_alias="SIMULATION_URL")
    simulation_api_key: Optional[str] = Field(default=None, validation_alias="SIMULATION_API_KEY")
    simulation_timeout_seconds: float = Field(default=15.0, validation_alias="SIMULATION_TIMEOUT_SECONDS")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str = Field(default="logs/swap_engine.log", validation_alias="LOG_FILE")
    log_redis_enabled: bool = Field(default=False, validation_alias="LOG_REDIS_ENABLED")
    log_redis_list_key: str = Field(default="swap_engine:logs", validation_alias="LOG_REDIS_LIST_KEY")
    log_redis_max_entries: int = Field(default=5000, validation_alias="LOG_REDIS_MAX_ENTRIES")
    redis_host: str = Field(default="localhost", validation_alias="REDIS_HOST")
    redis_port: int = Field(default=6379, validation_alias="REDIS_PORT")
    redis_db: int = Field(default=0, validation_alias="REDIS_DB")

    @property
    def quote_debounce_seconds(self) -> float:
        return max(self.quote_debounce_ms, 0) / 1000.0

    def network_config(self) -> NetworkConfig:
        config = get_network_config(self.network)
        if config is None:
            raise ValueError(f"Unknown network '{self.network}'; registered: {sorted(NETWORK_CONFIGS)}")
        return config


settings = Settings()
