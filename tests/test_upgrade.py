"""
Tests for signature-gated upgrades.

Covers:
  - Upgrade under quorum with a one-time initializer
  - State carried across the upgrade (validators, corridors, nonces, balances)
  - Initializers cannot run twice
  - Unsigned upgrade paths are rejected
  - Failed upgrades leave the old implementation in place
"""

import pytest

from bridgegate.bridge import BridgeLogic, InitCall, Upgraded
from bridgegate.constants import NATIVE_ASSET
from bridgegate.exceptions import (
    AlreadyInitialized,
    InvalidSignatures,
    NotAValidator,
    TransferVoteAlreadyCast,
    UpgradeNotAuthorized,
    VoteAlreadyCast,
)

from conftest import (
    CHAIN_ID,
    CUSTODY_NATIVE,
    FEE,
    MAX_AMOUNT,
    OTHER_CHAIN,
    TOKEN,
    USER,
    VALIDATOR_ADDRESSES,
    BridgeLogicV2,
)

SENDER = VALIDATOR_ADDRESSES[0]
NONCE = "upgrade_v2"


def upgrade(bridge, sign, implementation=BridgeLogicV2, init=None, nonce=NONCE, keys=None, sender=SENDER):
    message = bridge.get_upgrade_message(implementation.implementation_address(), nonce)
    return bridge.upgrade_to_with_signatures(sender, implementation, init, nonce, sign(message, keys))


class TestImplementationAddress:

    def test_stable(self):
        assert BridgeLogicV2.implementation_address() == BridgeLogicV2.implementation_address()

    def test_distinct_per_implementation(self):
        assert BridgeLogicV2.implementation_address() != BridgeLogic.implementation_address()

    def test_recorded_at_initialization(self, bridge):
        assert bridge.store.state.implementation == BridgeLogic.implementation_address()


class TestUpgrade:

    def test_upgrade_with_initializer(self, corridors, sign):
        assert corridors.get_version() == "1.0"
        upgrade(corridors, sign, init=InitCall("initialize2", kwargs={"note": "hello"}))

        assert corridors.get_version() == "2.0"
        assert corridors.greeting() == "v2"
        assert corridors.note == "hello"
        assert isinstance(corridors.implementation, BridgeLogicV2)
        assert corridors.store.state.implementation == BridgeLogicV2.implementation_address()
        assert corridors.events[-1] == Upgraded(
            implementation=BridgeLogicV2.implementation_address(), timestamp=corridors.events[-1].timestamp,
        )

    def test_upgrade_without_initializer(self, bridge, sign):
        upgrade(bridge, sign)
        assert bridge.get_version() == "2.0"
        assert not bridge.governance.is_initialized("2")

    def test_state_survives(self, corridors, sign, ledger):
        validators = corridors.get_validators()
        corridor = corridors.get_allowed_transfer(CHAIN_ID, OTHER_CHAIN, NATIVE_ASSET)
        upgrade(corridors, sign, init=InitCall("initialize2"))

        assert corridors.get_validators() == validators
        assert corridors.get_allowed_transfer(CHAIN_ID, OTHER_CHAIN, NATIVE_ASSET) == corridor
        assert corridors.get_validator_fee() == FEE
        assert corridors.get_chain_id() == CHAIN_ID
        assert corridors.native_balance() == CUSTODY_NATIVE

        # Corridor vote nonce 1 was consumed before the upgrade
        message = corridors.get_allowed_transfer_message(CHAIN_ID, OTHER_CHAIN, NATIVE_ASSET, TOKEN, True, MAX_AMOUNT, 1)
        with pytest.raises(TransferVoteAlreadyCast):
            corridors.set_allowed_transfer(
                SENDER, CHAIN_ID, OTHER_CHAIN, NATIVE_ASSET, TOKEN, True, MAX_AMOUNT, 1, sign(message),
            )

    def test_upgraded_bridge_keeps_working(self, corridors, sign, ledger):
        upgrade(corridors, sign)
        corridors.initiate_transfer(USER, USER, 10, CHAIN_ID, OTHER_CHAIN, NATIVE_ASSET, TOKEN, value=10 + 3 * FEE)
        assert corridors.native_balance() == CUSTODY_NATIVE + 10


class TestInitializers:

    def test_initializer_runs_once(self, bridge, sign):
        upgrade(bridge, sign, init=InitCall("initialize2"))
        with pytest.raises(AlreadyInitialized, match="Already initialized"):
            bridge.initialize2()

    def test_first_initializer_cannot_rerun(self, bridge):
        with pytest.raises(AlreadyInitialized):
            bridge.initialize(CHAIN_ID, [USER])
        assert bridge.get_validators() == VALIDATOR_ADDRESSES

    def test_reused_initializer_rolls_back_upgrade(self, bridge, sign):
        upgrade(bridge, sign, init=InitCall("initialize2"))
        with pytest.raises(AlreadyInitialized):
            upgrade(bridge, sign, init=InitCall("initialize2"), nonce="upgrade_v2_again")
        assert not bridge.actions.is_consumed("upgrade-vote", (), "upgrade_v2_again")

    def test_init_data_must_name_an_initializer(self, bridge, sign):
        with pytest.raises(ValueError, match="not an initializer"):
            upgrade(bridge, sign, init=InitCall("greeting"))
        assert type(bridge.implementation) is BridgeLogic
        assert not bridge.actions.is_consumed("upgrade-vote", (), NONCE)


class TestUpgradeAuthorization:

    def test_replay(self, bridge, sign):
        upgrade(bridge, sign)
        with pytest.raises(VoteAlreadyCast):
            upgrade(bridge, sign)

    def test_minority(self, bridge, sign, validator_keys):
        with pytest.raises(InvalidSignatures):
            upgrade(bridge, sign, keys=validator_keys[:1])
        assert type(bridge.implementation) is BridgeLogic

    def test_outsider(self, bridge, sign):
        with pytest.raises(NotAValidator):
            upgrade(bridge, sign, sender=USER)

    def test_signatures_bound_to_implementation(self, bridge, sign):
        message = bridge.get_upgrade_message(BridgeLogic.implementation_address(), NONCE)
        with pytest.raises(InvalidSignatures):
            bridge.upgrade_to_with_signatures(SENDER, BridgeLogicV2, None, NONCE, sign(message))

    def test_unsigned_paths_rejected(self, bridge):
        with pytest.raises(UpgradeNotAuthorized, match="Upgrade not authorized"):
            bridge.upgrade_to(BridgeLogicV2)
        with pytest.raises(UpgradeNotAuthorized):
            bridge.upgrade_to_and_call(BridgeLogicV2, InitCall("initialize2"))
        assert type(bridge.implementation) is BridgeLogic

    def test_authorization_hook_not_reachable_through_proxy(self, bridge):
        with pytest.raises(AttributeError):
            bridge._authorize_upgrade
        with pytest.raises(AttributeError):
            bridge.authorize_upgrade
        assert type(bridge.implementation) is BridgeLogic
