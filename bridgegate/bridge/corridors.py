"""
Corridor registry.

Directional whitelist of (source chain, destination chain, asset in) routes.
A route and its reverse are independent entries; a missing entry reads as
inactive with a zero maximum.
"""

from typing import Dict, List

from ..crypto.address import to_checksum_address
from ..exceptions import TransferNotAllowedOrExceedsMaximum
from ..logger import get_logger
from .state import BridgeState
from .types import AllowedTransferSet, Corridor, CorridorKey

logger = get_logger(__name__)


class CorridorRegistry:

    def __init__(self, state: BridgeState):
        self._state = state

    @staticmethod
    def key(source_chain: int, destination_chain: int, asset_in: str) -> CorridorKey:
        return (int(source_chain), int(destination_chain), to_checksum_address(asset_in))

    def get(self, source_chain: int, destination_chain: int, asset_in: str) -> Corridor:
        return self._state.corridors.get(self.key(source_chain, destination_chain, asset_in), Corridor())

    def set(
        self,
        source_chain: int,
        destination_chain: int,
        asset_in: str,
        asset_out: str,
        active: bool,
        max_amount: int,
    ) -> AllowedTransferSet:
        """Insert or overwrite the route's entry."""
        key = self.key(source_chain, destination_chain, asset_in)
        corridor = Corridor(active=bool(active), asset_out=to_checksum_address(asset_out), max_amount=max_amount)
        self._state.corridors[key] = corridor
        logger.info(
            f"Corridor {key[0]}->{key[1]} {key[2]} => {corridor.asset_out} "
            f"active={corridor.active} max={corridor.max_amount}"
        )
        return AllowedTransferSet(
            source_chain=key[0],
            destination_chain=key[1],
            asset_in=key[2],
            asset_out=corridor.asset_out,
            active=corridor.active,
            max_amount=corridor.max_amount,
        )

    def require_permitted(self, source_chain: int, destination_chain: int, asset_in: str, amount: int) -> Corridor:
        """
        Raises:
            TransferNotAllowedOrExceedsMaximum: If the route is inactive or amount exceeds its maximum
        """
        corridor = self.get(source_chain, destination_chain, asset_in)
        if not corridor.permits(amount):
            logger.warning(
                f"Rejected: corridor {source_chain}->{destination_chain} {asset_in} "
                f"does not permit {amount} (active={corridor.active}, max={corridor.max_amount})"
            )
            raise TransferNotAllowedOrExceedsMaximum()
        return corridor

    def entries(self) -> List[Dict]:
        return [
            {"sourceChain": src, "destinationChain": dst, "assetIn": asset_in, **corridor.to_dict()}
            for (src, dst, asset_in), corridor in self._state.corridors.items()
        ]
