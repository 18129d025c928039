from __future__ import annotations

import pytest
from web3 import Web3

from conftest import DAI, ETH, USDC, WETH
from swap_engine.clients.registry import TokenRegistry, TokenRegistryError
from swap_engine.models.token import Token
from swap_engine.settings.config import NETWORK_CONFIGS, get_network_config


def test_lookup_by_symbol_and_address(registry):
    assert registry.get("usdc") is USDC
    assert registry.by_address(DAI.address.lower()) is DAI
    assert "WETH" in registry
    assert registry.hub is WETH
    assert registry.native is ETH


def test_pool_token_maps_native_to_wrapped(registry):
    assert registry.pool_token(ETH) is WETH
    assert registry.pool_token(USDC) is USDC


def test_unknown_symbol(registry):
    with pytest.raises(TokenRegistryError):
        registry.get("PEPE")


def test_registry_requires_one_native_and_one_wrapped():
    with pytest.raises(TokenRegistryError):
        TokenRegistry([WETH, USDC])


def test_token_cannot_be_native_and_wrapped():
    with pytest.raises(ValueError):
        Token(symbol="X", address=WETH.address, decimals=18, is_native=True, is_wrapped_native=True)


@pytest.mark.parametrize("network", sorted(NETWORK_CONFIGS))
def test_every_network_builds_a_registry(network):
    config = get_network_config(network)
    registry = TokenRegistry.for_network(config)

    assert registry.native.symbol == config.native_symbol
    assert registry.wrapped_native.address.lower() == config.wrapped_native.lower()


def test_network_lookup_by_chain_id():
    assert get_network_config(137).name.lower().startswith("polygon")
    assert get_network_config("unknown") is None


def test_from_mapping_adds_native_entry():
    registry = TokenRegistry.from_mapping(
        "ETH",
        "WETH",
        {
            "WETH": {"address": WETH.address, "decimals": 18},
            "USDC": {"address": USDC.address, "decimals": 6},
        },
    )
    assert registry.get("ETH").is_native
    assert registry.get("USDC").decimals == 6


class _TokenRPC:
    def __init__(self, symbol: str, decimals: int) -> None:
        self.w3 = Web3()
        self.values = {"symbol": symbol, "decimals": decimals}
        self.reads: list[str] = []

    def contract(self, address, abi):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def read(self, contract_fn, label=None):
        self.reads.append(label)
        return self.values[label]


LINK_ADDRESS = "0x514910771af9ca656af840dff83e8264ecf986ca"


@pytest.mark.asyncio
async def test_register_from_chain_reads_erc20_metadata(registry):
    rpc = _TokenRPC("LINK", 18)

    token = await registry.register_from_chain(rpc, LINK_ADDRESS)

    assert token.symbol == "LINK"
    assert token.decimals == 18
    assert token.address == Web3.to_checksum_address(LINK_ADDRESS)
    assert not token.is_native and not token.is_wrapped_native
    assert registry.get("LINK") is token
    assert registry.by_address(Web3.to_checksum_address(LINK_ADDRESS)) is token
    assert rpc.reads == ["symbol", "decimals"]


@pytest.mark.asyncio
async def test_register_from_chain_returns_known_token_without_reads(registry):
    rpc = _TokenRPC("FAKE", 6)

    token = await registry.register_from_chain(rpc, USDC.address.lower())

    assert token == registry.get("USDC")
    assert rpc.reads == []
