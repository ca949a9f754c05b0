"""
Bridge rules engine.

`BridgeLogic` wires the quorum verifier, the action ledger, the registries,
the governance gateway and the transfer state machine over one state store,
and exposes every entry point and read accessor of the bridge.

Each mutating entry point runs as one store transaction: the caller is checked
against the validator set, parameters are validated, the quorum is verified
over the canonical message, the nonce is consumed, and only then are effects
applied. Any failure rolls back bridge state, native balances and tokens.

The class holds no state of its own; see `bridgegate.bridge.proxy` for how
an implementation is swapped over the same store.
"""

import functools
from typing import Any, Dict, List, Optional, Sequence

from ..chain.ledger import NativeLedger
from ..chain.token import TokenRegistry
from ..constants import BRIDGE_VERSION, NATIVE_ASSET
from ..crypto.address import to_checksum_address
from ..crypto.hashing import keccak256
from ..crypto.keys import SignatureLike
from ..exceptions import AlreadyVoted, TransferVoteAlreadyCast, VoteAlreadyCast
from ..logger import get_logger
from . import messages
from .actions import ActionLedger
from .corridors import CorridorRegistry
from .governance import GovernanceGateway
from .quorum import QuorumVerifier
from .state import BridgeStateStore
from .transfers import TransferStateMachine
from .types import ActionCategory, BridgeEvent, Corridor, Nonce
from .validators import ValidatorRegistry, parse_vote_type

logger = get_logger(__name__)

Signatures = Sequence[SignatureLike]


def initializer(version: str):
    """
    Mark a method as a one-time initializer.

    The method runs inside a transaction and records `version` in the store;
    calling any initializer of an already recorded version fails with
    AlreadyInitialized.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            with self._transaction():
                self.governance.mark_initialized(version)
                return fn(self, *args, **kwargs)
        wrapper.initializer_version = version
        return wrapper
    return decorator


def custody_address(chain_id: int) -> str:
    """Deterministic custody address of the bridge on `chain_id`."""
    return to_checksum_address(keccak256(b"bridgegate.custody" + chain_id.to_bytes(32, "big"))[-20:])


class BridgeLogic:
    """
    Version 1 rules of the bridge.

    Args:
        store: State store shared by every implementation of this bridge
        ledger: Native value ledger
        tokens: Token contracts the bridge may move, mint or burn
        verifier: Quorum verifier (defaults to personal_sign recovery)
    """

    VERSION = BRIDGE_VERSION

    def __init__(
        self,
        store: BridgeStateStore,
        ledger: NativeLedger,
        tokens: TokenRegistry,
        verifier: Optional[QuorumVerifier] = None,
    ):
        self._store = store
        self._ledger = ledger
        self._tokens = tokens
        self._verifier = verifier or QuorumVerifier()

        state = store.state
        self.actions = ActionLedger(state)
        self.validators = ValidatorRegistry(state)
        self.corridors = CorridorRegistry(state)
        self.governance = GovernanceGateway(state)
        self.transfers = TransferStateMachine(
            state, ledger, tokens, self.validators, self.corridors, self.governance, self.actions,
        )

    @classmethod
    def implementation_address(cls) -> str:
        """Identity of this rules implementation, the address upgrade votes sign."""
        name = f"{cls.__module__}.{cls.__qualname__}@{cls.VERSION}".encode()
        return to_checksum_address(keccak256(name)[-20:])

    # ── Plumbing ──────────────────────────────────────────────────────

    @property
    def store(self) -> BridgeStateStore:
        return self._store

    @property
    def ledger(self) -> NativeLedger:
        return self._ledger

    @property
    def tokens(self) -> TokenRegistry:
        return self._tokens

    @property
    def verifier(self) -> QuorumVerifier:
        return self._verifier

    def _transaction(self):
        return self._store.transaction(self._ledger, self._tokens)

    def _require_validator(self, sender: str) -> None:
        self._verifier.require_validator(to_checksum_address(sender), self._store.state.validators)

    def _verify(self, message: bytes, signatures: Signatures) -> None:
        self._verifier.verify(message, signatures, self._store.state.validators)

    def _emit(self, *events: BridgeEvent) -> None:
        for event in events:
            self._store.state.events.append(event)
            logger.debug(f"[{type(event).__name__}] {event.to_dict()}")

    # ── Initialization ────────────────────────────────────────────────

    @initializer("1")
    def initialize(
        self,
        chain_id: int,
        validators: Sequence[str],
        validator_fee: int = 0,
        address: Optional[str] = None,
        locked: bool = False,
    ) -> None:
        """Install chain identity, custody address, initial validators and fee."""
        state = self._store.state
        state.chain_id = int(chain_id)
        state.address = to_checksum_address(address) if address else custody_address(state.chain_id)
        self.validators.seed(validators)
        self.governance.set_validator_fee(validator_fee)
        if locked:
            self._emit(self.governance.set_locked(True))
        self.governance.record_upgrade(self.implementation_address())
        logger.info(
            f"Bridge initialized on chain {state.chain_id} at {state.address} "
            f"with {len(self.validators)} validator(s), fee {validator_fee}"
        )

    # ── Validator votes ───────────────────────────────────────────────

    def vote_validator(
        self,
        sender: str,
        vote_type: int,
        validator: str,
        nonce: Nonce,
        signatures: Signatures,
    ) -> None:
        """
        Add (1) or remove (2) a validator.

        Raises:
            NotAValidator, InvalidVote, InvalidSignatures, AlreadyVoted,
            ValidatorAlreadyExists, ValidatorNotFound, LastValidator
        """
        with self._transaction():
            self._require_validator(sender)
            vote = parse_vote_type(vote_type)
            validator = to_checksum_address(validator)
            self._verify(messages.vote_validator_message(vote, validator, nonce), signatures)
            self.actions.consume(ActionCategory.VALIDATOR_VOTE, (int(vote), validator), nonce, AlreadyVoted)
            self._emit(self.validators.apply_vote(vote, validator))

    # ── Governance ────────────────────────────────────────────────────

    def set_validator_reward(self, sender: str, value: int, nonce: Nonce, signatures: Signatures) -> None:
        with self._transaction():
            self._require_validator(sender)
            self._verify(messages.vote_reward_message(value, nonce), signatures)
            self.actions.consume(ActionCategory.REWARD_VOTE, (), nonce, VoteAlreadyCast)
            self._emit(self.governance.set_validator_fee(value))

    def lock(self, sender: str, nonce: Nonce, signatures: Signatures) -> None:
        """Pause initiations; completions may then only pay validators."""
        with self._transaction():
            self._require_validator(sender)
            self._verify(messages.lock_message(nonce), signatures)
            self.actions.consume(ActionCategory.LOCK_VOTE, (), nonce, VoteAlreadyCast)
            self._emit(self.governance.set_locked(True))

    def modify_rewards_and_lock(
        self,
        sender: str,
        value: int,
        lock: bool,
        nonce: Nonce,
        signatures: Signatures,
    ) -> None:
        """Set the fee and the pause flag together; the only way to unlock."""
        with self._transaction():
            self._require_validator(sender)
            self._verify(messages.modify_rewards_and_lock_message(value, lock, nonce), signatures)
            self.actions.consume(ActionCategory.LOCK_VOTE, (), nonce, VoteAlreadyCast)
            self._emit(*self.governance.modify_rewards_and_lock(value, lock))

    def set_mintable_token(
        self,
        sender: str,
        asset: str,
        mintable: bool,
        nonce: Nonce,
        signatures: Signatures,
    ) -> None:
        with self._transaction():
            self._require_validator(sender)
            asset = to_checksum_address(asset)
            self._verify(messages.mintable_token_message(asset, mintable, nonce), signatures)
            self.actions.consume(ActionCategory.MINTABLE_VOTE, (asset,), nonce, VoteAlreadyCast)
            self._emit(self.governance.set_mintable(asset, mintable))

    def set_allowed_transfer(
        self,
        sender: str,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        active: bool,
        max_amount: int,
        nonce: Nonce,
        signatures: Signatures,
    ) -> None:
        """Insert or overwrite a corridor."""
        with self._transaction():
            self._require_validator(sender)
            key = self.corridors.key(source_chain, destination_chain, asset_in)
            message = messages.allowed_transfer_message(
                source_chain, destination_chain, asset_in, asset_out, active, max_amount, nonce,
            )
            self._verify(message, signatures)
            self.actions.consume(ActionCategory.CORRIDOR_VOTE, key, nonce, TransferVoteAlreadyCast)
            self._emit(self.corridors.set(source_chain, destination_chain, asset_in, asset_out, active, max_amount))

    def _authorize_upgrade(self, sender: str, new_implementation: str, nonce: Nonce, signatures: Signatures) -> None:
        """
        Check and record a quorum vote for `new_implementation`. Called by the
        proxy inside its upgrade transaction.
        """
        with self._transaction():
            self._require_validator(sender)
            new_implementation = to_checksum_address(new_implementation)
            self._verify(messages.upgrade_message(new_implementation, nonce), signatures)
            self.actions.consume(ActionCategory.UPGRADE_VOTE, (), nonce, VoteAlreadyCast)

    # ── Transfers ─────────────────────────────────────────────────────

    def initiate_transfer(
        self,
        sender: str,
        recipient: str,
        amount: int,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        value: int = 0,
    ) -> None:
        """
        Lock or burn the caller's funds for a transfer to `destination_chain`.
        Open to any caller; `value` is the native value attached to the call.
        """
        with self._transaction():
            self._emit(self.transfers.initiate(
                sender, recipient, amount, source_chain, destination_chain, asset_in, asset_out, value,
            ))

    def complete_transfer(
        self,
        sender: str,
        recipient: str,
        amount: int,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        nonce: Nonce,
        signatures: Signatures,
    ) -> None:
        with self._transaction():
            self._require_validator(sender)
            self.transfers.validate_completion(recipient, amount, destination_chain)
            message = messages.transaction_message(
                recipient, amount, source_chain, destination_chain, asset_in, asset_out, nonce,
            )
            self._verify(message, signatures)
            self._emit(self.transfers.complete(
                recipient, amount, source_chain, destination_chain, asset_in, asset_out, nonce,
            ))

    def recover_funds(
        self,
        sender: str,
        recipient: str,
        amount: int,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        nonce: Nonce,
        signatures: Signatures,
    ) -> None:
        with self._transaction():
            self._require_validator(sender)
            self.transfers.validate_recovery(recipient, amount, source_chain)
            message = messages.recover_funds_message(
                recipient, amount, source_chain, destination_chain, asset_in, nonce,
            )
            self._verify(message, signatures)
            self._emit(self.transfers.recover(
                recipient, amount, source_chain, destination_chain, asset_in, nonce,
            ))

    def block_transfer(
        self,
        sender: str,
        source_chain: int,
        destination_chain: int,
        nonce: Nonce,
        signatures: Signatures,
    ) -> None:
        with self._transaction():
            self._require_validator(sender)
            self.transfers.require_destination_chain(destination_chain)
            self._verify(messages.block_transfer_message(source_chain, destination_chain, nonce), signatures)
            self._emit(self.transfers.block(source_chain, destination_chain, nonce))

    # ── Read accessors ────────────────────────────────────────────────

    @property
    def address(self) -> str:
        return self._store.state.address

    @property
    def events(self) -> List[BridgeEvent]:
        return list(self._store.state.events)

    def get_version(self) -> str:
        return self.VERSION

    def get_chain_id(self) -> int:
        return self._store.state.chain_id

    def get_validators(self) -> List[str]:
        return self.validators.validators

    def is_validator(self, address: str) -> bool:
        return self.validators.is_validator(address)

    def get_validator_fee(self) -> int:
        return self.governance.validator_fee

    def is_locked(self) -> bool:
        return self.governance.locked

    def is_mintable(self, asset: str) -> bool:
        return self.governance.is_mintable(asset)

    def get_allowed_transfer(self, source_chain: int, destination_chain: int, asset_in: str) -> Corridor:
        return self.corridors.get(source_chain, destination_chain, asset_in)

    def is_transfer_resolved(self, source_chain: int, destination_chain: int, nonce: Nonce) -> bool:
        return self.transfers.is_resolved(source_chain, destination_chain, nonce)

    def native_balance(self) -> int:
        return self._ledger.balance_of(self.address)

    def token_balance(self, asset: str) -> int:
        if to_checksum_address(asset) == NATIVE_ASSET:
            return self.native_balance()
        return self._tokens.get_or_raise(asset).balance_of(self.address)

    def state_dict(self) -> Dict[str, Any]:
        return self._store.state.to_dict()

    # ── Message accessors ─────────────────────────────────────────────

    def get_vote_validator_message(self, vote_type: int, validator: str, nonce: Nonce) -> bytes:
        return messages.vote_validator_message(vote_type, validator, nonce)

    def get_vote_reward_message(self, value: int, nonce: Nonce) -> bytes:
        return messages.vote_reward_message(value, nonce)

    def get_allowed_transfer_message(
        self,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        active: bool,
        max_amount: int,
        nonce: Nonce,
    ) -> bytes:
        return messages.allowed_transfer_message(
            source_chain, destination_chain, asset_in, asset_out, active, max_amount, nonce,
        )

    def get_lock_message(self, nonce: Nonce) -> bytes:
        return messages.lock_message(nonce)

    def get_modify_rewards_and_lock_message(self, value: int, lock: bool, nonce: Nonce) -> bytes:
        return messages.modify_rewards_and_lock_message(value, lock, nonce)

    def get_mintable_token_message(self, asset: str, mintable: bool, nonce: Nonce) -> bytes:
        return messages.mintable_token_message(asset, mintable, nonce)

    def get_transaction_message(
        self,
        recipient: str,
        amount: int,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        nonce: Nonce,
    ) -> bytes:
        return messages.transaction_message(
            recipient, amount, source_chain, destination_chain, asset_in, asset_out, nonce,
        )

    def get_recover_funds_message(
        self,
        recipient: str,
        amount: int,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        nonce: Nonce,
    ) -> bytes:
        return messages.recover_funds_message(recipient, amount, source_chain, destination_chain, asset_in, nonce)

    def get_block_transfer_message(self, source_chain: int, destination_chain: int, nonce: Nonce) -> bytes:
        return messages.block_transfer_message(source_chain, destination_chain, nonce)

    def get_upgrade_message(self, new_implementation: str, nonce: Nonce) -> bytes:
        return messages.upgrade_message(new_implementation, nonce)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} v{self.VERSION} chain={self.get_chain_id()} validators={len(self.validators)}>"
