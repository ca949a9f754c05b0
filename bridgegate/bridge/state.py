"""
Persisted bridge state and its stores.

Everything the authorization core owns lives in one `BridgeState`: the
validator set, the corridor table, consumed action records, the governance
configuration and the initializers that already ran. Rules implementations
never keep state of their own, so swapping the implementation over the same
store preserves all of it.

Stores serialize writers with a re-entrant lock and make every transaction
all-or-nothing: bridge state and every participating ledger are snapshotted
on entry and restored if the body or the final commit raises. The
notification log is not snapshotted; a rollback truncates it instead.
"""

import copy
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Protocol, Set, Tuple

from ..constants import ZERO_ADDRESS
from ..logger import get_logger
from .types import ActionCategory, BridgeConfig, BridgeEvent, Corridor, CorridorKey, Nonce

logger = get_logger(__name__)

ActionKey = Tuple[str, Tuple[Any, ...], Nonce]


class Snapshottable(Protocol):
    """A collaborator whose state joins bridge transactions."""

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...


@dataclass
class BridgeState:
    chain_id: int = 0
    address: str = ZERO_ADDRESS
    # dict used as an insertion-ordered set
    validators: Dict[str, None] = field(default_factory=dict)
    corridors: Dict[CorridorKey, Corridor] = field(default_factory=dict)
    actions: Set[ActionKey] = field(default_factory=set)
    config: BridgeConfig = field(default_factory=BridgeConfig)
    initialized: Set[str] = field(default_factory=set)
    implementation: str = ZERO_ADDRESS
    events: List[BridgeEvent] = field(default_factory=list)

    def assign(self, other: "BridgeState") -> None:
        """Overwrite this state in place with the contents of `other`."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

    def checkpoint(self) -> Tuple["BridgeState", int]:
        """Deep copy of everything but the notification log, plus the log length."""
        return copy.deepcopy(replace(self, events=[])), len(self.events)

    def rollback(self, checkpoint: Tuple["BridgeState", int]) -> None:
        saved, event_count = checkpoint
        events = self.events
        del events[event_count:]
        self.assign(saved)
        self.events = events

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        """JSON-compatible layout of the persisted state (notifications excluded)."""
        return {
            "chainId": self.chain_id,
            "address": self.address,
            "validators": list(self.validators),
            "corridors": [
                {
                    "sourceChain": src,
                    "destinationChain": dst,
                    "assetIn": asset_in,
                    **corridor.to_dict(),
                }
                for (src, dst, asset_in), corridor in self.corridors.items()
            ],
            "actions": sorted(
                ([category, list(scope), _encode_nonce(nonce)] for category, scope, nonce in self.actions),
                key=json.dumps,
            ),
            "config": self.config.to_dict(),
            "initialized": sorted(self.initialized),
            "implementation": self.implementation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeState":
        return cls(
            chain_id=data.get("chainId", 0),
            address=data.get("address", ZERO_ADDRESS),
            validators=dict.fromkeys(data.get("validators", [])),
            corridors={
                (c["sourceChain"], c["destinationChain"], c["assetIn"]): Corridor(
                    active=c["active"], asset_out=c["assetOut"], max_amount=c["maxAmount"],
                )
                for c in data.get("corridors", [])
            },
            actions={
                (ActionCategory(category).value, tuple(scope), _decode_nonce(nonce))
                for category, scope, nonce in data.get("actions", [])
            },
            config=BridgeConfig.from_dict(data.get("config", {})),
            initialized=set(data.get("initialized", [])),
            implementation=data.get("implementation", ZERO_ADDRESS),
        )


def _encode_nonce(nonce: Nonce) -> Any:
    if isinstance(nonce, bytes):
        return {"bytes32": "0x" + nonce.hex()}
    return nonce


def _decode_nonce(value: Any) -> Nonce:
    if isinstance(value, dict):
        return bytes.fromhex(value["bytes32"][2:])
    return value


# ══════════════════════════════════════════════════════════════════════
#  STORES
# ══════════════════════════════════════════════════════════════════════

class BridgeStateStore(Protocol):
    """
    Backend holding the bridge state.

    Implementations must serialize transactions and roll back every change
    (bridge state and participants) when the transaction body raises.
    """

    @property
    def state(self) -> BridgeState:
        """Current state, for reads."""
        ...

    def transaction(self, *participants: Snapshottable) -> Iterator[BridgeState]:
        """Context manager yielding the state for an atomic mutation."""
        ...


class InMemoryBridgeStateStore:
    """
    Lock-guarded in-memory store.

    Transactions nest: a call re-entering the bridge from inside a transfer
    hook opens an inner transaction with its own snapshot.
    """

    def __init__(self, state: Optional[BridgeState] = None):
        self._state = state or BridgeState()
        self._lock = threading.RLock()
        self._depth = 0

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @contextmanager
    def transaction(self, *participants: Snapshottable) -> Iterator[BridgeState]:
        with self._lock:
            checkpoint = self._state.checkpoint()
            saved = [(p, p.snapshot()) for p in participants]
            self._depth += 1
            try:
                yield self._state
                if self._depth == 1:
                    self._commit()
            except BaseException:
                self._state.rollback(checkpoint)
                for participant, snapshot in reversed(saved):
                    participant.restore(snapshot)
                raise
            finally:
                self._depth -= 1

    def _commit(self) -> None:
        """Hook for stores that persist committed state."""


class JsonFileBridgeStateStore(InMemoryBridgeStateStore):
    """
    In-memory store that writes the state to a JSON file after every
    committed outermost transaction and reloads it on construction.
    """

    def __init__(self, path: str):
        self._path = Path(path)
        state = None
        if self._path.exists():
            with open(self._path, "r", encoding="utf-8") as f:
                state = BridgeState.from_dict(json.load(f))
            logger.info(f"Bridge state loaded from {self._path}")
        super().__init__(state)

    @property
    def path(self) -> Path:
        return self._path

    def _commit(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._state.to_dict(), f, indent=2)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Bridge state written to {self._path}")
