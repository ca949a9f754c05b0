"""
Native value ledger.

Models the hosting chain's native value accounts at the interface the bridge
needs: balances, value transfer and recipient hooks. A hook stands in for a
recipient contract's receive function; it runs after the recipient has been
credited and may call back into the bridge.
"""

from typing import Callable, Dict, Optional

from ..crypto.address import to_checksum_address
from ..exceptions import InsufficientBalance, LedgerError
from ..logger import get_logger

logger = get_logger(__name__)

ReceiveHook = Callable[[str, int], None]


class NativeLedger:
    """
    Native value balances keyed by checksummed address.
    """

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._receivers: Dict[str, ReceiveHook] = {}

    # ── Read-only views ───────────────────────────────────────────────

    def balance_of(self, address: str) -> int:
        return self._balances.get(to_checksum_address(address), 0)

    @property
    def total_supply(self) -> int:
        return sum(self._balances.values())

    # ── Mutations ─────────────────────────────────────────────────────

    def credit(self, address: str, amount: int) -> None:
        """Create native value out of thin air (genesis allocation, test funding)."""
        if amount < 0:
            raise LedgerError("Credit amount cannot be negative")
        address = to_checksum_address(address)
        self._balances[address] = self._balances.get(address, 0) + amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move native value and notify the recipient's hook, if any.

        Raises:
            InsufficientBalance: If sender cannot cover amount
            LedgerError: On a negative amount
        """
        if amount < 0:
            raise LedgerError("Transfer amount cannot be negative")
        sender = to_checksum_address(sender)
        recipient = to_checksum_address(recipient)

        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(f"{sender} balance {balance} < transfer amount {amount}")

        self._balances[sender] = balance - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        logger.debug(f"native transfer {sender} -> {recipient} {amount}")

        hook = self._receivers.get(recipient)
        if hook is not None:
            hook(sender, amount)

    # ── Recipient contracts ───────────────────────────────────────────

    def register_receiver(self, address: str, hook: Optional[ReceiveHook]) -> None:
        """Attach (or with None, detach) a receive hook to an address."""
        address = to_checksum_address(address)
        if hook is None:
            self._receivers.pop(address, None)
        else:
            self._receivers[address] = hook

    # ── Atomicity ─────────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, int]:
        return dict(self._balances)

    def restore(self, snapshot: Dict[str, int]) -> None:
        self._balances = dict(snapshot)

    def __repr__(self) -> str:
        return f"<NativeLedger accounts={len(self._balances)}>"
