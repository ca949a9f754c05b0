"""
Transfer state machine.

A cross-chain transfer is initiated on its source chain and resolved exactly
once on its destination chain, by completion, recovery or blocking. The three
resolutions share one action scope per (source chain, destination chain,
nonce), so whichever lands first settles the transfer for good.

Resolution consumes the nonce before releasing anything: a recipient hook that
calls back into the bridge finds the transfer already resolved.
"""

from ..chain.ledger import NativeLedger
from ..chain.token import TokenRegistry
from ..constants import NATIVE_ASSET
from ..crypto.address import to_checksum_address
from ..exceptions import (
    AmountCannotBeZero,
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientFundsOrAllowance,
    InsufficientTokenBalance,
    InvalidDestinationChain,
    InvalidSourceChain,
    RecipientCannotBeZero,
    TransferAlreadyBlocked,
    TransferAlreadyCompleted,
    TransferNotAllowedOrExceedsMaximum,
)
from ..logger import get_logger
from .actions import ActionLedger
from .corridors import CorridorRegistry
from .governance import GovernanceGateway
from .state import BridgeState
from .types import (
    ActionCategory,
    FundsRecovered,
    Nonce,
    TransferBlocked,
    TransferCompleted,
    TransferInitiated,
)
from .validators import ValidatorRegistry

logger = get_logger(__name__)


def require_recipient_and_amount(recipient: str, amount: int) -> str:
    """
    Returns:
        The checksummed recipient

    Raises:
        RecipientCannotBeZero, AmountCannotBeZero
    """
    recipient = to_checksum_address(recipient)
    if recipient == NATIVE_ASSET:
        raise RecipientCannotBeZero()
    if amount <= 0:
        raise AmountCannotBeZero()
    return recipient


class TransferStateMachine:

    def __init__(
        self,
        state: BridgeState,
        ledger: NativeLedger,
        tokens: TokenRegistry,
        validators: ValidatorRegistry,
        corridors: CorridorRegistry,
        governance: GovernanceGateway,
        actions: ActionLedger,
    ):
        self._state = state
        self._ledger = ledger
        self._tokens = tokens
        self._validators = validators
        self._corridors = corridors
        self._governance = governance
        self._actions = actions

    @property
    def chain_id(self) -> int:
        return self._state.chain_id

    @property
    def custody(self) -> str:
        """Address holding the bridge's custody balances."""
        return self._state.address

    # ── Checks ────────────────────────────────────────────────────────

    def require_source_chain(self, source_chain: int) -> None:
        if int(source_chain) != self.chain_id:
            logger.warning(f"Rejected: source chain {source_chain} is not {self.chain_id}")
            raise InvalidSourceChain()

    def require_destination_chain(self, destination_chain: int) -> None:
        if int(destination_chain) != self.chain_id:
            logger.warning(f"Rejected: destination chain {destination_chain} is not {self.chain_id}")
            raise InvalidDestinationChain()

    def _require_route(
        self,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        amount: int,
    ) -> None:
        corridor = self._corridors.require_permitted(source_chain, destination_chain, asset_in, amount)
        if corridor.asset_out != to_checksum_address(asset_out):
            logger.warning(
                f"Rejected: corridor {source_chain}->{destination_chain} {asset_in} "
                f"releases {corridor.asset_out}, not {asset_out}"
            )
            raise TransferNotAllowedOrExceedsMaximum()

    # ── Source side ───────────────────────────────────────────────────

    def required_value(self, amount: int, asset_in: str) -> int:
        """Native value an initiation must attach: the fees, plus the amount for native transfers."""
        fees = self._governance.validator_fee * len(self._validators)
        if to_checksum_address(asset_in) == NATIVE_ASSET:
            return amount + fees
        return fees

    def initiate(
        self,
        sender: str,
        recipient: str,
        amount: int,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        value: int,
    ) -> TransferInitiated:
        """
        Move the caller's funds into custody (or burn them) and pay validator fees.

        Raises:
            BridgeIsLocked, RecipientCannotBeZero, AmountCannotBeZero,
            InvalidSourceChain, TransferNotAllowedOrExceedsMaximum,
            InsufficientFundsOrAllowance
        """
        self._governance.require_unlocked()
        sender = to_checksum_address(sender)
        recipient = require_recipient_and_amount(recipient, amount)
        self.require_source_chain(source_chain)
        asset_in = to_checksum_address(asset_in)
        asset_out = to_checksum_address(asset_out)
        self._require_route(source_chain, destination_chain, asset_in, asset_out, amount)

        required = self.required_value(amount, asset_in)
        if value < required:
            logger.warning(f"Rejected: attached value {value} < required {required}")
            raise InsufficientFundsOrAllowance()

        try:
            self._ledger.transfer(sender, self.custody, value)
            if asset_in != NATIVE_ASSET:
                self._pull_asset(sender, asset_in, amount)
        except (InsufficientBalance, InsufficientAllowance, InsufficientTokenBalance) as e:
            logger.warning(f"Rejected: {e}")
            raise InsufficientFundsOrAllowance() from e

        if value > required:
            self._ledger.transfer(self.custody, sender, value - required)

        fee = self._governance.validator_fee
        if fee:
            for validator in self._validators.validators:
                self._ledger.transfer(self.custody, validator, fee)

        logger.info(
            f"Transfer initiated: {amount} {asset_in} {source_chain}->{destination_chain} "
            f"for {recipient} by {sender}"
        )
        return TransferInitiated(
            sender=sender,
            recipient=recipient,
            amount=amount,
            source_chain=int(source_chain),
            destination_chain=int(destination_chain),
            asset_in=asset_in,
            asset_out=asset_out,
        )

    def _pull_asset(self, owner: str, asset: str, amount: int) -> None:
        token = self._tokens.get_or_raise(asset)
        if self._governance.is_mintable(asset):
            token.burn_from(self.custody, owner, amount)
        else:
            token.transfer_from(self.custody, owner, self.custody, amount)

    # ── Destination side ──────────────────────────────────────────────

    def validate_completion(
        self,
        recipient: str,
        amount: int,
        destination_chain: int,
    ) -> str:
        """
        Checks run before the signatures are examined: recipient, amount,
        chain identity and, while locked, that the recipient is a validator.
        """
        recipient = require_recipient_and_amount(recipient, amount)
        self.require_destination_chain(destination_chain)
        self._governance.require_release_allowed(recipient, self._validators)
        return recipient

    def complete(
        self,
        recipient: str,
        amount: int,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        nonce: Nonce,
    ) -> TransferCompleted:
        """
        Release `asset_out` for a transfer initiated on `source_chain`.

        Raises:
            TransferNotAllowedOrExceedsMaximum, RecipientIsNotAValidator,
            TransferAlreadyCompleted, InsufficientFundsOrAllowance
        """
        recipient = self.validate_completion(recipient, amount, destination_chain)
        asset_in = to_checksum_address(asset_in)
        asset_out = to_checksum_address(asset_out)
        self._require_route(source_chain, destination_chain, asset_in, asset_out, amount)

        self._resolve(source_chain, destination_chain, nonce, TransferAlreadyCompleted)
        self._release(asset_out, recipient, amount)

        logger.info(
            f"Transfer completed: {amount} {asset_out} to {recipient} "
            f"({source_chain}->{destination_chain}, nonce={nonce!r})"
        )
        return TransferCompleted(
            recipient=recipient,
            amount=amount,
            source_chain=int(source_chain),
            destination_chain=int(destination_chain),
            asset_in=asset_in,
            asset_out=asset_out,
            nonce=nonce,
        )

    def validate_recovery(self, recipient: str, amount: int, source_chain: int) -> str:
        recipient = require_recipient_and_amount(recipient, amount)
        self.require_source_chain(source_chain)
        return recipient

    def recover(
        self,
        recipient: str,
        amount: int,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        nonce: Nonce,
    ) -> FundsRecovered:
        """
        Return custodied `asset_in` of a transfer that left this chain.

        Raises:
            TransferAlreadyCompleted, InsufficientFundsOrAllowance
        """
        recipient = self.validate_recovery(recipient, amount, source_chain)
        asset_in = to_checksum_address(asset_in)

        self._resolve(source_chain, destination_chain, nonce, TransferAlreadyCompleted)
        self._release(asset_in, recipient, amount)

        logger.info(
            f"Funds recovered: {amount} {asset_in} to {recipient} "
            f"({source_chain}->{destination_chain}, nonce={nonce!r})"
        )
        return FundsRecovered(
            recipient=recipient,
            amount=amount,
            source_chain=int(source_chain),
            destination_chain=int(destination_chain),
            asset=asset_in,
            nonce=nonce,
        )

    def block(self, source_chain: int, destination_chain: int, nonce: Nonce) -> TransferBlocked:
        """
        Settle a pending transfer without moving funds.

        Raises:
            TransferAlreadyBlocked
        """
        self.require_destination_chain(destination_chain)
        self._resolve(source_chain, destination_chain, nonce, TransferAlreadyBlocked)
        logger.info(f"Transfer blocked: {source_chain}->{destination_chain} nonce={nonce!r}")
        return TransferBlocked(
            source_chain=int(source_chain),
            destination_chain=int(destination_chain),
            nonce=nonce,
        )

    def is_resolved(self, source_chain: int, destination_chain: int, nonce: Nonce) -> bool:
        return self._actions.is_consumed(
            ActionCategory.TRANSFER_RESOLUTION, (int(source_chain), int(destination_chain)), nonce,
        )

    # ── Internals ─────────────────────────────────────────────────────

    def _resolve(self, source_chain: int, destination_chain: int, nonce: Nonce, error) -> None:
        self._actions.consume(
            ActionCategory.TRANSFER_RESOLUTION,
            (int(source_chain), int(destination_chain)),
            nonce,
            error,
        )

    def _release(self, asset: str, recipient: str, amount: int) -> None:
        try:
            if asset == NATIVE_ASSET:
                self._ledger.transfer(self.custody, recipient, amount)
                return
            token = self._tokens.get_or_raise(asset)
            if self._governance.is_mintable(asset):
                token.mint(self.custody, recipient, amount)
            else:
                token.transfer(self.custody, recipient, amount)
        except (InsufficientBalance, InsufficientTokenBalance) as e:
            logger.warning(f"Rejected: custody cannot cover release: {e}")
            raise InsufficientFundsOrAllowance() from e
