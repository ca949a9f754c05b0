"""
Governance gateway.

Sole owner of the `BridgeConfig`: validator fee, pause flag and mintable-asset
flags. Other components read the configuration through the gateway and never
assign to it. Initializer bookkeeping for upgrades lives here as well.
"""

from typing import Collection, List

from ..crypto.address import to_checksum_address
from ..exceptions import AlreadyInitialized, BridgeIsLocked, RecipientIsNotAValidator
from ..logger import get_logger
from .state import BridgeState
from .types import (
    BridgeConfig,
    BridgeEvent,
    BridgeLockChanged,
    MintableTokenSet,
    Upgraded,
    ValidatorRewardChanged,
)

logger = get_logger(__name__)


class GovernanceGateway:

    def __init__(self, state: BridgeState):
        self._state = state

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def config(self) -> BridgeConfig:
        return self._state.config

    @property
    def validator_fee(self) -> int:
        return self._state.config.validator_fee

    @property
    def locked(self) -> bool:
        return self._state.config.locked

    def is_mintable(self, asset: str) -> bool:
        return self._state.config.is_mintable(to_checksum_address(asset))

    # ── Guards ────────────────────────────────────────────────────────

    def require_unlocked(self) -> None:
        if self.locked:
            logger.warning("Rejected: bridge is locked")
            raise BridgeIsLocked()

    def require_release_allowed(self, recipient: str, validators: Collection[str]) -> None:
        """While locked, funds may only be released to validators."""
        if self.locked and recipient not in validators:
            logger.warning(f"Rejected: bridge is locked and {recipient} is not a validator")
            raise RecipientIsNotAValidator()

    # ── Transitions ───────────────────────────────────────────────────

    def set_validator_fee(self, value: int) -> ValidatorRewardChanged:
        if value < 0:
            raise ValueError("Validator fee cannot be negative")
        self._bump()
        self._state.config.validator_fee = value
        logger.info(f"Validator fee set to {value} (config v{self.config.version})")
        return ValidatorRewardChanged(validator_fee=value)

    def set_locked(self, locked: bool) -> BridgeLockChanged:
        self._bump()
        self._state.config.locked = bool(locked)
        logger.info(f"Bridge {'locked' if locked else 'unlocked'} (config v{self.config.version})")
        return BridgeLockChanged(locked=bool(locked))

    def modify_rewards_and_lock(self, value: int, locked: bool) -> List[BridgeEvent]:
        """Fee change and pause flag as a single configuration transition."""
        if value < 0:
            raise ValueError("Validator fee cannot be negative")
        self._bump()
        self._state.config.validator_fee = value
        self._state.config.locked = bool(locked)
        logger.info(
            f"Validator fee set to {value}, bridge {'locked' if locked else 'unlocked'} "
            f"(config v{self.config.version})"
        )
        return [ValidatorRewardChanged(validator_fee=value), BridgeLockChanged(locked=bool(locked))]

    def set_mintable(self, asset: str, mintable: bool) -> MintableTokenSet:
        asset = to_checksum_address(asset)
        self._bump()
        if mintable:
            self._state.config.mintable[asset] = True
        else:
            self._state.config.mintable.pop(asset, None)
        logger.info(f"Asset {asset} mintable={bool(mintable)} (config v{self.config.version})")
        return MintableTokenSet(asset=asset, mintable=bool(mintable))

    # ── Initializers and upgrades ─────────────────────────────────────

    def is_initialized(self, version: str) -> bool:
        return version in self._state.initialized

    def mark_initialized(self, version: str) -> None:
        """
        Raises:
            AlreadyInitialized: If the initializer for `version` already ran
        """
        if version in self._state.initialized:
            logger.warning(f"Rejected: initializer {version} already ran")
            raise AlreadyInitialized()
        self._state.initialized.add(version)

    def record_upgrade(self, implementation: str) -> Upgraded:
        self._state.implementation = implementation
        logger.info(f"Implementation set to {implementation}")
        return Upgraded(implementation=implementation)

    def _bump(self) -> None:
        self._state.config.version += 1
