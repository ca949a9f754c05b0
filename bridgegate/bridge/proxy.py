"""
Upgradeable bridge front.

`BridgeProxy` is what callers hold. It forwards every entry point and read to
the current rules implementation, and replaces that implementation only
through a validator-quorum vote. The replacement is constructed over the same
state store, ledger and tokens, so validators, corridors, consumed nonces,
governance flags and custody balances carry over unchanged.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Type

from ..chain.ledger import NativeLedger
from ..chain.token import TokenRegistry
from ..exceptions import UpgradeNotAuthorized
from ..logger import get_logger
from .core import BridgeLogic, Signatures
from .quorum import QuorumVerifier
from .state import BridgeStateStore
from .types import Nonce

logger = get_logger(__name__)


@dataclass(frozen=True)
class InitCall:
    """Post-upgrade initializer call: method name and arguments."""
    name: str
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)


class BridgeProxy:

    def __init__(
        self,
        store: BridgeStateStore,
        ledger: NativeLedger,
        tokens: TokenRegistry,
        implementation: Type[BridgeLogic] = BridgeLogic,
        verifier: Optional[QuorumVerifier] = None,
    ):
        self._store = store
        self._ledger = ledger
        self._tokens = tokens
        self._verifier = verifier
        self._implementation = implementation(store, ledger, tokens, verifier)

    @property
    def implementation(self) -> BridgeLogic:
        return self._implementation

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._implementation, name)

    def upgrade_to_with_signatures(
        self,
        sender: str,
        new_implementation: Type[BridgeLogic],
        init_data: Optional[InitCall],
        nonce: Nonce,
        signatures: Signatures,
    ) -> BridgeLogic:
        """
        Replace the rules implementation after a validator quorum approved
        `new_implementation.implementation_address()` with `nonce`.

        `init_data` names an initializer of the new implementation that runs
        once, in the same transaction; if it fails the upgrade is rolled back.

        Raises:
            NotAValidator, InvalidSignatures, VoteAlreadyCast,
            AlreadyInitialized, ValueError (init_data is not an initializer)
        """
        with self._store.transaction(self._ledger, self._tokens):
            target = new_implementation.implementation_address()
            self._implementation._authorize_upgrade(sender, target, nonce, signatures)

            candidate = new_implementation(self._store, self._ledger, self._tokens, self._verifier)
            if init_data is not None:
                method = getattr(candidate, init_data.name, None)
                if getattr(method, "initializer_version", None) is None:
                    raise ValueError(f"{init_data.name!r} is not an initializer of {new_implementation.__name__}")
                method(*init_data.args, **init_data.kwargs)

            candidate._emit(candidate.governance.record_upgrade(target))

        previous = type(self._implementation).__name__
        self._implementation = candidate
        logger.info(f"Bridge upgraded: {previous} -> {new_implementation.__name__} at {target}")
        return candidate

    def upgrade_to(self, *args, **kwargs) -> None:
        """Unsigned upgrades are never accepted."""
        logger.warning("Rejected: upgrade without validator signatures")
        raise UpgradeNotAuthorized()

    def upgrade_to_and_call(self, *args, **kwargs) -> None:
        """Unsigned upgrades are never accepted."""
        logger.warning("Rejected: upgrade without validator signatures")
        raise UpgradeNotAuthorized()

    def __repr__(self) -> str:
        return f"<BridgeProxy -> {self._implementation!r}>"
