"""
Bridge Types

Core data structures shared by the bridge components: vote types, action
categories, corridors, the governance configuration and the notifications
emitted by committed operations.
"""

import time
from dataclasses import dataclass, field, asdict
from enum import Enum, IntEnum
from typing import Any, Dict, Tuple, Union

from ..constants import ZERO_ADDRESS

Nonce = Union[int, bytes]
CorridorKey = Tuple[int, int, str]


class VoteType(IntEnum):
    """Validator set change requested by a validator vote."""
    ADD = 1
    REMOVE = 2


class ActionCategory(str, Enum):
    """
    Namespaces of the action ledger.

    Completion, recovery and blocking of a transfer resolve the same logical
    transfer, so they share TRANSFER_RESOLUTION.
    """
    VALIDATOR_VOTE = "validator-vote"
    REWARD_VOTE = "reward-vote"
    CORRIDOR_VOTE = "corridor-vote"
    LOCK_VOTE = "lock-vote"
    MINTABLE_VOTE = "mintable-vote"
    TRANSFER_RESOLUTION = "transfer-resolution"
    UPGRADE_VOTE = "upgrade-vote"


@dataclass(frozen=True)
class Corridor:
    """A whitelisted route; the default value is an inactive, zero-capacity entry."""
    active: bool = False
    asset_out: str = ZERO_ADDRESS
    max_amount: int = 0

    def permits(self, amount: int) -> bool:
        return self.active and amount <= self.max_amount

    def to_dict(self) -> Dict[str, Any]:
        return {"active": self.active, "assetOut": self.asset_out, "maxAmount": self.max_amount}


@dataclass
class BridgeConfig:
    """
    Scalar governance state.

    Only the governance gateway mutates it; every applied transition bumps
    `version`.
    """
    validator_fee: int = 0
    locked: bool = False
    mintable: Dict[str, bool] = field(default_factory=dict)
    version: int = 0

    def is_mintable(self, asset: str) -> bool:
        return self.mintable.get(asset, False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validatorFee": self.validator_fee,
            "locked": self.locked,
            "mintable": dict(self.mintable),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeConfig":
        return cls(
            validator_fee=data.get("validatorFee", 0),
            locked=data.get("locked", False),
            mintable=dict(data.get("mintable", {})),
            version=data.get("version", 0),
        )


# ══════════════════════════════════════════════════════════════════════
#  NOTIFICATIONS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BridgeEvent:
    """Base for notifications; `to_dict` names the event after its class."""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event"] = type(self).__name__
        return data


@dataclass(frozen=True)
class TransferInitiated(BridgeEvent):
    """Observed off-ledger by validators, who co-sign the matching completion."""
    sender: str
    recipient: str
    amount: int
    source_chain: int
    destination_chain: int
    asset_in: str
    asset_out: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TransferCompleted(BridgeEvent):
    recipient: str
    amount: int
    source_chain: int
    destination_chain: int
    asset_in: str
    asset_out: str
    nonce: Nonce
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class FundsRecovered(BridgeEvent):
    recipient: str
    amount: int
    source_chain: int
    destination_chain: int
    asset: str
    nonce: Nonce
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TransferBlocked(BridgeEvent):
    source_chain: int
    destination_chain: int
    nonce: Nonce
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ValidatorAdded(BridgeEvent):
    validator: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ValidatorRemoved(BridgeEvent):
    validator: str
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ValidatorRewardChanged(BridgeEvent):
    validator_fee: int
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class BridgeLockChanged(BridgeEvent):
    locked: bool
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class AllowedTransferSet(BridgeEvent):
    source_chain: int
    destination_chain: int
    asset_in: str
    asset_out: str
    active: bool
    max_amount: int
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class MintableTokenSet(BridgeEvent):
    asset: str
    mintable: bool
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Upgraded(BridgeEvent):
    implementation: str
    timestamp: float = field(default_factory=time.time)
