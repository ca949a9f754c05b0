"""
Validator registry.

The set of identities allowed to co-sign bridge actions. Membership tests are
dictionary lookups; iteration follows registration order, which is also the
order validator fees are paid in. The set is never empty.
"""

from typing import Iterable, List

from ..crypto.address import to_checksum_address
from ..exceptions import InvalidVote, LastValidator, ValidatorAlreadyExists, ValidatorNotFound
from ..logger import get_logger
from .state import BridgeState
from .types import BridgeEvent, ValidatorAdded, ValidatorRemoved, VoteType

logger = get_logger(__name__)


def parse_vote_type(vote_type: int) -> VoteType:
    """
    Raises:
        InvalidVote: For anything other than Add (1) or Remove (2)
    """
    try:
        return VoteType(vote_type)
    except ValueError:
        logger.warning(f"Rejected: unknown vote type {vote_type!r}")
        raise InvalidVote() from None


class ValidatorRegistry:

    def __init__(self, state: BridgeState):
        self._state = state

    @property
    def validators(self) -> List[str]:
        return list(self._state.validators)

    def __contains__(self, address: str) -> bool:
        return self.is_validator(address)

    def __len__(self) -> int:
        return len(self._state.validators)

    def is_validator(self, address: str) -> bool:
        try:
            return to_checksum_address(address) in self._state.validators
        except ValueError:
            return False

    def seed(self, validators: Iterable[str]) -> None:
        """Install the initial validator set."""
        members = dict.fromkeys(to_checksum_address(v) for v in validators)
        if not members:
            raise LastValidator("Validator set cannot be empty")
        self._state.validators.clear()
        self._state.validators.update(members)

    def add(self, address: str) -> ValidatorAdded:
        address = to_checksum_address(address)
        if address in self._state.validators:
            raise ValidatorAlreadyExists()
        self._state.validators[address] = None
        logger.info(f"Validator added: {address} (total {len(self)})")
        return ValidatorAdded(validator=address)

    def remove(self, address: str) -> ValidatorRemoved:
        address = to_checksum_address(address)
        if address not in self._state.validators:
            raise ValidatorNotFound()
        if len(self._state.validators) <= 1:
            raise LastValidator()
        del self._state.validators[address]
        logger.info(f"Validator removed: {address} (total {len(self)})")
        return ValidatorRemoved(validator=address)

    def apply_vote(self, vote_type: VoteType, address: str) -> BridgeEvent:
        if vote_type == VoteType.ADD:
            return self.add(address)
        return self.remove(address)
