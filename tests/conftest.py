"""
Shared fixtures: a three-validator bridge on chain 123 with a fee of 80,
a funded user, a test token, and corridors to and from chain 321.
"""

import pytest

from bridgegate.bridge import (
    BridgeLogic,
    InMemoryBridgeStateStore,
    deploy_bridge,
    initializer,
)
from bridgegate.chain import NativeLedger, Token, TokenRegistry
from bridgegate.config import BridgeSectionConfig, BridgeSettings
from bridgegate.constants import NATIVE_ASSET
from bridgegate.crypto import PrivateKey, sign_message


# ══════════════════════════════════════════════════════════════════════
#  ACCOUNTS
# ══════════════════════════════════════════════════════════════════════

VALIDATOR_KEYS = [
    "222448da4964a3c5e80b5fbce76d458bbb2ec9a6fa8930298c7c02cb0ece7776",
    "e651b3defe47e955eff21b553542dfc173619876071ee98fad9272c45af54656",
    "460662364e0016741948d0a64eb08905792f5484ef0c962d0d018837c23f1af7",
]
VALIDATOR_ADDRESSES = [
    "0xFe84dFC77D747512cBaE15B6af042886d4329d82",
    "0x34b9e58EA19695DDdc3bF71edBA9Bf8F1F8227C2",
    "0x4C47ddDa6cc8618290F0bFf7a66bDB27677e81eE",
]

DEPLOYER = "0x1000000000000000000000000000000000000001"
USER = "0x2000000000000000000000000000000000000002"
OUTSIDER = "0x3000000000000000000000000000000000000003"
TOKEN = "0x4000000000000000000000000000000000000004"

CHAIN_ID = 123
OTHER_CHAIN = 321
FEE = 80
MAX_AMOUNT = 100

USER_NATIVE = 1_000_000
USER_TOKENS = 10_000
CUSTODY_NATIVE = 1_000_000
CUSTODY_TOKENS = 10_000


class BridgeLogicV2(BridgeLogic):
    """Second rules version with its own one-time initializer."""

    VERSION = "2.0"

    @initializer("2")
    def initialize2(self, note: str = "") -> None:
        self.note = note

    def greeting(self) -> str:
        return "v2"


# ══════════════════════════════════════════════════════════════════════
#  FIXTURES
# ══════════════════════════════════════════════════════════════════════

@pytest.fixture
def validator_keys():
    return [PrivateKey.from_hex(k) for k in VALIDATOR_KEYS]


@pytest.fixture
def sign(validator_keys):
    """Sign a message with every validator, or with the given keys."""
    def _sign(message, keys=None):
        return [sign_message(k, message) for k in (validator_keys if keys is None else keys)]
    return _sign


@pytest.fixture
def settings():
    return BridgeSettings(
        bridge=BridgeSectionConfig(
            chain_id=CHAIN_ID,
            validator_fee=FEE,
            initial_validators=list(VALIDATOR_ADDRESSES),
        )
    )


@pytest.fixture
def ledger():
    ledger = NativeLedger()
    ledger.credit(USER, USER_NATIVE)
    return ledger


@pytest.fixture
def token():
    return Token(TOKEN, "TKN", total_supply=1_000_000, deployer=DEPLOYER)


@pytest.fixture
def tokens(token):
    registry = TokenRegistry()
    registry.deploy(token)
    return registry


@pytest.fixture
def store():
    return InMemoryBridgeStateStore()


@pytest.fixture
def bridge(settings, ledger, tokens, token, store):
    """Bridge with funded custody; no corridors yet."""
    proxy = deploy_bridge(settings, ledger, tokens, store=store)
    ledger.credit(proxy.address, CUSTODY_NATIVE)
    token.transfer(DEPLOYER, proxy.address, CUSTODY_TOKENS)
    token.transfer(DEPLOYER, USER, USER_TOKENS)
    return proxy


@pytest.fixture
def corridors(bridge, sign):
    """Native <-> TKN corridors in both directions between 123 and 321."""
    routes = [
        (CHAIN_ID, OTHER_CHAIN, NATIVE_ASSET, TOKEN),
        (CHAIN_ID, OTHER_CHAIN, TOKEN, NATIVE_ASSET),
        (OTHER_CHAIN, CHAIN_ID, TOKEN, NATIVE_ASSET),
        (OTHER_CHAIN, CHAIN_ID, NATIVE_ASSET, TOKEN),
    ]
    for nonce, (src, dst, asset_in, asset_out) in enumerate(routes, start=1):
        message = bridge.get_allowed_transfer_message(src, dst, asset_in, asset_out, True, MAX_AMOUNT, nonce)
        bridge.set_allowed_transfer(
            VALIDATOR_ADDRESSES[0], src, dst, asset_in, asset_out, True, MAX_AMOUNT, nonce, sign(message),
        )
    return bridge
