"""
Tests for the destination side of a transfer: completion, recovery and
blocking, and the resolution scope they share.
"""

import pytest

from bridgegate.bridge import FundsRecovered, TransferBlocked, TransferCompleted
from bridgegate.chain import Token
from bridgegate.constants import NATIVE_ASSET, ZERO_ADDRESS
from bridgegate.exceptions import (
    AmountCannotBeZero,
    InsufficientFundsOrAllowance,
    InvalidDestinationChain,
    InvalidSignatures,
    InvalidSourceChain,
    NotAValidator,
    RecipientCannotBeZero,
    RecipientIsNotAValidator,
    TransferAlreadyBlocked,
    TransferAlreadyCompleted,
    TransferNotAllowedOrExceedsMaximum,
)

from conftest import (
    CHAIN_ID,
    CUSTODY_NATIVE,
    CUSTODY_TOKENS,
    DEPLOYER,
    MAX_AMOUNT,
    OTHER_CHAIN,
    TOKEN,
    USER,
    USER_NATIVE,
    USER_TOKENS,
    VALIDATOR_ADDRESSES,
)

SENDER = VALIDATOR_ADDRESSES[0]
EMPTY_TOKEN = "0x5000000000000000000000000000000000000005"


def complete(bridge, sign, amount, nonce, asset_in=TOKEN, asset_out=NATIVE_ASSET,
             recipient=USER, src=OTHER_CHAIN, dst=CHAIN_ID, keys=None, sender=SENDER):
    message = bridge.get_transaction_message(recipient, amount, src, dst, asset_in, asset_out, nonce)
    bridge.complete_transfer(sender, recipient, amount, src, dst, asset_in, asset_out, nonce, sign(message, keys))


def recover(bridge, sign, amount, nonce, asset_in=NATIVE_ASSET, recipient=USER, src=CHAIN_ID, dst=OTHER_CHAIN):
    message = bridge.get_recover_funds_message(recipient, amount, src, dst, asset_in, nonce)
    bridge.recover_funds(SENDER, recipient, amount, src, dst, asset_in, nonce, sign(message))


def block(bridge, sign, nonce, src=OTHER_CHAIN, dst=CHAIN_ID):
    bridge.block_transfer(SENDER, src, dst, nonce, sign(bridge.get_block_transfer_message(src, dst, nonce)))


def lock(bridge, sign, nonce=100):
    bridge.lock(SENDER, nonce, sign(bridge.get_lock_message(nonce)))


# ══════════════════════════════════════════════════════════════════════
#  1. COMPLETION
# ══════════════════════════════════════════════════════════════════════

class TestCompleteTransfer:

    def test_native_release(self, corridors, sign, ledger):
        complete(corridors, sign, 50, 1)
        assert ledger.balance_of(USER) == USER_NATIVE + 50
        assert corridors.native_balance() == CUSTODY_NATIVE - 50
        assert corridors.is_transfer_resolved(OTHER_CHAIN, CHAIN_ID, 1)

    def test_token_release(self, corridors, sign, token):
        complete(corridors, sign, 50, 1, asset_in=NATIVE_ASSET, asset_out=TOKEN)
        assert token.balance_of(USER) == USER_TOKENS + 50
        assert corridors.token_balance(TOKEN) == CUSTODY_TOKENS - 50

    def test_event(self, corridors, sign):
        complete(corridors, sign, 50, 1)
        event = corridors.events[-1]
        assert isinstance(event, TransferCompleted)
        assert (event.recipient, event.amount, event.nonce) == (USER, 50, 1)
        assert (event.asset_in, event.asset_out) == (TOKEN, NATIVE_ASSET)

    def test_replay(self, corridors, sign, ledger):
        complete(corridors, sign, 50, 1)
        with pytest.raises(TransferAlreadyCompleted, match="Transfer already completed"):
            complete(corridors, sign, 50, 1)
        assert ledger.balance_of(USER) == USER_NATIVE + 50

    def test_text_nonce(self, corridors, sign):
        complete(corridors, sign, 50, "0xdeadbeef-transfer")
        with pytest.raises(TransferAlreadyCompleted):
            complete(corridors, sign, 50, b"0xdeadbeef-transfer")

    def test_outsider(self, corridors, sign):
        with pytest.raises(NotAValidator):
            complete(corridors, sign, 50, 1, sender=USER)

    def test_minority(self, corridors, sign, validator_keys):
        with pytest.raises(InvalidSignatures):
            complete(corridors, sign, 50, 1, keys=validator_keys[:1])
        assert not corridors.is_transfer_resolved(OTHER_CHAIN, CHAIN_ID, 1)

    def test_signatures_bound_to_amount(self, corridors, sign):
        message = corridors.get_transaction_message(USER, 50, OTHER_CHAIN, CHAIN_ID, TOKEN, NATIVE_ASSET, 1)
        with pytest.raises(InvalidSignatures):
            corridors.complete_transfer(
                SENDER, USER, 99, OTHER_CHAIN, CHAIN_ID, TOKEN, NATIVE_ASSET, 1, sign(message),
            )

    def test_wrong_destination(self, corridors, sign):
        with pytest.raises(InvalidDestinationChain, match="Invalid destination chain"):
            complete(corridors, sign, 50, 1, src=CHAIN_ID, dst=OTHER_CHAIN)

    def test_destination_checked_before_signatures(self, corridors):
        with pytest.raises(InvalidDestinationChain):
            corridors.complete_transfer(SENDER, USER, 50, OTHER_CHAIN, 999, TOKEN, NATIVE_ASSET, 1, [])

    def test_zero_recipient(self, corridors, sign):
        with pytest.raises(RecipientCannotBeZero):
            complete(corridors, sign, 50, 1, recipient=ZERO_ADDRESS)

    def test_zero_amount(self, corridors, sign):
        with pytest.raises(AmountCannotBeZero):
            complete(corridors, sign, 0, 1)

    def test_exceeds_maximum(self, corridors, sign):
        with pytest.raises(TransferNotAllowedOrExceedsMaximum):
            complete(corridors, sign, MAX_AMOUNT + 1, 1)

    def test_asset_out_must_match_corridor(self, corridors, sign):
        with pytest.raises(TransferNotAllowedOrExceedsMaximum):
            complete(corridors, sign, 50, 1, asset_in=TOKEN, asset_out=TOKEN)

    def test_custody_cannot_cover(self, corridors, sign, tokens):
        tokens.deploy(Token(EMPTY_TOKEN, "EMT"))
        message = corridors.get_allowed_transfer_message(OTHER_CHAIN, CHAIN_ID, EMPTY_TOKEN, EMPTY_TOKEN, True, 100, 50)
        corridors.set_allowed_transfer(
            SENDER, OTHER_CHAIN, CHAIN_ID, EMPTY_TOKEN, EMPTY_TOKEN, True, 100, 50, sign(message),
        )
        with pytest.raises(InsufficientFundsOrAllowance):
            complete(corridors, sign, 50, 1, asset_in=EMPTY_TOKEN, asset_out=EMPTY_TOKEN)
        assert not corridors.is_transfer_resolved(OTHER_CHAIN, CHAIN_ID, 1)


class TestCompleteWhileLocked:

    def test_regular_recipient_rejected(self, corridors, sign, ledger):
        lock(corridors, sign)
        with pytest.raises(RecipientIsNotAValidator, match="Recipient is not a validator"):
            complete(corridors, sign, 50, 1)
        assert ledger.balance_of(USER) == USER_NATIVE

    def test_recipient_checked_before_signatures(self, corridors, sign, ledger):
        lock(corridors, sign)
        signed_for = VALIDATOR_ADDRESSES[1]
        message = corridors.get_transaction_message(signed_for, 50, OTHER_CHAIN, CHAIN_ID, TOKEN, NATIVE_ASSET, 1)
        with pytest.raises(RecipientIsNotAValidator):
            corridors.complete_transfer(
                SENDER, DEPLOYER, 50, OTHER_CHAIN, CHAIN_ID, TOKEN, NATIVE_ASSET, 1, sign(message),
            )
        assert ledger.balance_of(DEPLOYER) == 0
        assert not corridors.is_transfer_resolved(OTHER_CHAIN, CHAIN_ID, 1)

    def test_validator_recipient_paid(self, corridors, sign, ledger):
        lock(corridors, sign)
        complete(corridors, sign, 50, 1, recipient=VALIDATOR_ADDRESSES[1])
        assert ledger.balance_of(VALIDATOR_ADDRESSES[1]) == 50


# ══════════════════════════════════════════════════════════════════════
#  2. RECOVERY
# ══════════════════════════════════════════════════════════════════════

class TestRecoverFunds:

    def test_native_recovery(self, corridors, sign, ledger):
        recover(corridors, sign, 70, 1)
        assert ledger.balance_of(USER) == USER_NATIVE + 70
        assert corridors.native_balance() == CUSTODY_NATIVE - 70
        event = corridors.events[-1]
        assert isinstance(event, FundsRecovered)
        assert (event.asset, event.amount) == (NATIVE_ASSET, 70)

    def test_token_recovery(self, corridors, sign, token):
        recover(corridors, sign, 70, 1, asset_in=TOKEN)
        assert token.balance_of(USER) == USER_TOKENS + 70

    def test_no_corridor_needed(self, bridge, sign, ledger):
        recover(bridge, sign, 500, 1)
        assert ledger.balance_of(USER) == USER_NATIVE + 500

    def test_replay(self, corridors, sign):
        recover(corridors, sign, 70, 1)
        with pytest.raises(TransferAlreadyCompleted):
            recover(corridors, sign, 70, 1)

    def test_wrong_source(self, corridors, sign):
        with pytest.raises(InvalidSourceChain):
            recover(corridors, sign, 70, 1, src=OTHER_CHAIN, dst=CHAIN_ID)

    def test_recovery_beyond_custody(self, corridors, sign):
        with pytest.raises(InsufficientFundsOrAllowance):
            recover(corridors, sign, CUSTODY_NATIVE + 1, 1)
        assert not corridors.is_transfer_resolved(CHAIN_ID, OTHER_CHAIN, 1)


# ══════════════════════════════════════════════════════════════════════
#  3. BLOCKING
# ══════════════════════════════════════════════════════════════════════

class TestBlockTransfer:

    def test_block_moves_nothing(self, corridors, sign, ledger):
        block(corridors, sign, 1)
        assert corridors.is_transfer_resolved(OTHER_CHAIN, CHAIN_ID, 1)
        assert corridors.native_balance() == CUSTODY_NATIVE
        assert isinstance(corridors.events[-1], TransferBlocked)

    def test_block_twice(self, corridors, sign):
        block(corridors, sign, 1)
        with pytest.raises(TransferAlreadyBlocked, match="Transfer already blocked"):
            block(corridors, sign, 1)

    def test_wrong_destination(self, corridors, sign):
        with pytest.raises(InvalidDestinationChain):
            block(corridors, sign, 1, src=CHAIN_ID, dst=OTHER_CHAIN)


class TestSharedResolutionScope:

    def test_blocked_transfer_cannot_complete(self, corridors, sign, ledger):
        block(corridors, sign, 1)
        with pytest.raises(TransferAlreadyCompleted):
            complete(corridors, sign, 50, 1)
        assert ledger.balance_of(USER) == USER_NATIVE

    def test_completed_transfer_cannot_be_blocked(self, corridors, sign):
        complete(corridors, sign, 50, 1)
        with pytest.raises(TransferAlreadyBlocked):
            block(corridors, sign, 1)

    def test_recovered_transfer_cannot_be_blocked(self, corridors, sign):
        recover(corridors, sign, 50, 7, src=CHAIN_ID, dst=CHAIN_ID)
        with pytest.raises(TransferAlreadyBlocked):
            block(corridors, sign, 7, src=CHAIN_ID, dst=CHAIN_ID)

    def test_scope_is_per_chain_pair(self, corridors, sign):
        complete(corridors, sign, 50, 1)
        block(corridors, sign, 1, src=999)
        assert corridors.is_transfer_resolved(999, CHAIN_ID, 1)

    def test_other_nonce_unaffected(self, corridors, sign):
        block(corridors, sign, 1)
        complete(corridors, sign, 50, 2)
        assert corridors.is_transfer_resolved(OTHER_CHAIN, CHAIN_ID, 2)
