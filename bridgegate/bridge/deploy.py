"""
Bridge deployment from settings.
"""

from typing import Optional, Type

from ..chain.ledger import NativeLedger
from ..chain.token import TokenRegistry
from ..config.loader import BridgeSettings
from ..logger import get_logger, set_log_level
from .core import BridgeLogic
from .proxy import BridgeProxy
from .quorum import QuorumVerifier
from .state import BridgeStateStore, InMemoryBridgeStateStore, JsonFileBridgeStateStore

logger = get_logger(__name__)


def open_store(settings: BridgeSettings) -> BridgeStateStore:
    """A JSON file store when `state_file` is set, otherwise in-memory."""
    if settings.bridge.state_file:
        return JsonFileBridgeStateStore(settings.bridge.state_file)
    return InMemoryBridgeStateStore()


def deploy_bridge(
    settings: BridgeSettings,
    ledger: Optional[NativeLedger] = None,
    tokens: Optional[TokenRegistry] = None,
    store: Optional[BridgeStateStore] = None,
    implementation: Type[BridgeLogic] = BridgeLogic,
    verifier: Optional[QuorumVerifier] = None,
) -> BridgeProxy:
    """
    Build a bridge proxy and run its initializer, unless the store already
    holds an initialized bridge (a restarted deployment).

    Raises:
        ValueError: If the settings are invalid
    """
    settings.validate()
    set_log_level(settings.logging.level)

    ledger = ledger if ledger is not None else NativeLedger()
    tokens = tokens if tokens is not None else TokenRegistry()
    store = store if store is not None else open_store(settings)

    proxy = BridgeProxy(store, ledger, tokens, implementation, verifier)
    if proxy.governance.is_initialized("1"):
        logger.info(f"Resuming bridge on chain {proxy.get_chain_id()} at {proxy.address}")
        return proxy

    section = settings.bridge
    proxy.initialize(
        chain_id=section.chain_id,
        validators=section.initial_validators,
        validator_fee=section.validator_fee,
        address=section.custody_address or None,
        locked=section.locked,
    )
    return proxy
