"""
Validator-quorum-gated bridge.

Components:
  - messages:    canonical per-category digests validators sign
  - quorum:      strict-majority signature verification
  - actions:     nonce-scoped replay protection
  - validators:  validator registry
  - corridors:   whitelisted routes
  - governance:  fee, pause and mintable flags
  - transfers:   initiate / complete / recover / block
  - core:        BridgeLogic, the rules engine
  - proxy:       BridgeProxy, the upgrade boundary
"""

from .types import (
    ActionCategory,
    AllowedTransferSet,
    BridgeConfig,
    BridgeEvent,
    BridgeLockChanged,
    Corridor,
    FundsRecovered,
    MintableTokenSet,
    TransferBlocked,
    TransferCompleted,
    TransferInitiated,
    Upgraded,
    ValidatorAdded,
    ValidatorRemoved,
    ValidatorRewardChanged,
    VoteType,
)
from .quorum import QuorumVerifier, quorum_size
from .actions import ActionLedger
from .validators import ValidatorRegistry
from .corridors import CorridorRegistry
from .governance import GovernanceGateway
from .transfers import TransferStateMachine
from .state import BridgeState, BridgeStateStore, InMemoryBridgeStateStore, JsonFileBridgeStateStore
from .core import BridgeLogic, initializer, custody_address
from .proxy import BridgeProxy, InitCall
from .deploy import deploy_bridge, open_store

__all__ = [
    # Types
    "ActionCategory",
    "BridgeConfig",
    "Corridor",
    "VoteType",
    # Notifications
    "BridgeEvent",
    "TransferInitiated",
    "TransferCompleted",
    "FundsRecovered",
    "TransferBlocked",
    "ValidatorAdded",
    "ValidatorRemoved",
    "ValidatorRewardChanged",
    "BridgeLockChanged",
    "AllowedTransferSet",
    "MintableTokenSet",
    "Upgraded",
    # Components
    "QuorumVerifier",
    "quorum_size",
    "ActionLedger",
    "ValidatorRegistry",
    "CorridorRegistry",
    "GovernanceGateway",
    "TransferStateMachine",
    # State
    "BridgeState",
    "BridgeStateStore",
    "InMemoryBridgeStateStore",
    "JsonFileBridgeStateStore",
    # Rules and upgrade
    "BridgeLogic",
    "BridgeProxy",
    "InitCall",
    "initializer",
    "custody_address",
    # Deployment
    "deploy_bridge",
    "open_store",
]
