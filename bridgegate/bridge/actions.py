"""
Nonce-scoped action ledger.

Records which (category, scope, nonce) tuples have been applied. A tuple is
consumed once; the consuming operation marks it before any value moves, so a
call re-entering the bridge during that transfer sees it as already used.
"""

from typing import Any, Optional, Tuple, Type

from ..exceptions import ReplayError
from ..logger import get_logger
from .messages import normalize_nonce
from .state import ActionKey, BridgeState
from .types import ActionCategory, Nonce

logger = get_logger(__name__)


class ActionLedger:

    def __init__(self, state: BridgeState):
        self._state = state

    @staticmethod
    def key(category: ActionCategory, scope: Tuple[Any, ...], nonce: Nonce) -> ActionKey:
        return (ActionCategory(category).value, tuple(scope), normalize_nonce(nonce))

    def is_consumed(self, category: ActionCategory, scope: Tuple[Any, ...], nonce: Nonce) -> bool:
        return self.key(category, scope, nonce) in self._state.actions

    def try_consume(self, category: ActionCategory, scope: Tuple[Any, ...], nonce: Nonce) -> bool:
        """
        Mark the tuple consumed.

        Returns:
            False if it was already consumed, True otherwise
        """
        key = self.key(category, scope, nonce)
        if key in self._state.actions:
            return False
        self._state.actions.add(key)
        logger.debug(f"Consumed [{key[0]}] scope={key[1]} nonce={key[2]!r}")
        return True

    def consume(
        self,
        category: ActionCategory,
        scope: Tuple[Any, ...],
        nonce: Nonce,
        error: Type[ReplayError],
    ) -> None:
        """
        Like `try_consume`, raising `error` on a replay.
        """
        if not self.try_consume(category, scope, nonce):
            logger.warning(f"Rejected: replay of [{ActionCategory(category).value}] nonce={nonce!r}")
            raise error()

    def count(self, category: Optional[ActionCategory] = None) -> int:
        if category is None:
            return len(self._state.actions)
        value = ActionCategory(category).value
        return sum(1 for key in self._state.actions if key[0] == value)
