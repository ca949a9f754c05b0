"""
Fungible token contracts bridged by the corridors.

Mirrors ERC-20 semantics with integer amounts:
    - balance_of(address) -> int
    - transfer(sender, recipient, amount)
    - approve(owner, spender, amount)
    - transfer_from(spender, owner, recipient, amount)

Additional hooks for mintable (wrapped) assets:
    - mint(operator, recipient, amount), restricted to registered minters
    - burn_from(spender, owner, amount), spending the owner's allowance
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from ..crypto.address import to_checksum_address
from ..constants import ZERO_ADDRESS
from ..exceptions import (
    InsufficientAllowance,
    InsufficientTokenBalance,
    TokenError,
    UnauthorizedMinter,
    UnknownToken,
)
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TokenTransferEvent:
    """Emitted on every balance movement; mints come from and burns go to the zero address."""
    token: str
    sender: str
    recipient: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "token": self.token,
            "from": self.sender,
            "to": self.recipient,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class TokenApprovalEvent:
    """Emitted on every successful approve."""
    token: str
    owner: str
    spender: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "token": self.token,
            "owner": self.owner,
            "spender": self.spender,
            "amount": self.amount,
            "timestamp": self.timestamp,
        }


# ══════════════════════════════════════════════════════════════════════
#  TOKEN
# ══════════════════════════════════════════════════════════════════════

class Token:
    """
    ERC-20 style token living at `address`.
    """

    def __init__(
        self,
        address: str,
        symbol: str,
        total_supply: int = 0,
        deployer: str = "",
        *,
        minters: Optional[Set[str]] = None,
    ):
        """
        Args:
            address: Contract address of the token
            symbol: Short ticker
            total_supply: Initial supply credited to the deployer
            deployer: Address receiving the initial supply
            minters: Addresses allowed to mint
        """
        if not symbol:
            raise TokenError("Token symbol cannot be empty")
        if total_supply < 0:
            raise TokenError("Total supply cannot be negative")

        self.address = to_checksum_address(address)
        self.symbol = symbol
        self._total_supply = total_supply
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._minters: Set[str] = {to_checksum_address(m) for m in (minters or ())}
        self._events: List[Any] = []

        if total_supply > 0 and deployer:
            self._balances[to_checksum_address(deployer)] = total_supply

        logger.info(f"Token deployed: {symbol} at {self.address}, supply={total_supply}")

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self._balances.get(to_checksum_address(address), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((to_checksum_address(owner), to_checksum_address(spender)), 0)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    # ── Core ERC-20 operations ────────────────────────────────────────

    def transfer(self, sender: str, recipient: str, amount: int) -> TokenTransferEvent:
        sender = to_checksum_address(sender)
        recipient = to_checksum_address(recipient)
        self._move(sender, recipient, amount)
        return self._emit_transfer(sender, recipient, amount)

    def approve(self, owner: str, spender: str, amount: int) -> TokenApprovalEvent:
        if amount < 0:
            raise TokenError("Approval amount cannot be negative")
        owner = to_checksum_address(owner)
        spender = to_checksum_address(spender)
        self._allowances[(owner, spender)] = amount

        event = TokenApprovalEvent(token=self.symbol, owner=owner, spender=spender, amount=amount)
        self._events.append(event)
        logger.debug(f"approve: {owner} allows {spender} {amount} {self.symbol}")
        return event

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> TokenTransferEvent:
        """
        Transfer on behalf of *owner* using the spender's allowance.

        Raises:
            InsufficientAllowance: If the allowance does not cover amount
            InsufficientTokenBalance: If the owner's balance does not cover amount
        """
        spender = to_checksum_address(spender)
        owner = to_checksum_address(owner)
        recipient = to_checksum_address(recipient)

        allowed = self._allowances.get((owner, spender), 0)
        if allowed < amount:
            raise InsufficientAllowance(f"Allowance {allowed} < transfer amount {amount}")

        self._move(owner, recipient, amount)
        self._allowances[(owner, spender)] = allowed - amount
        return self._emit_transfer(owner, recipient, amount)

    # ── Mint / burn ───────────────────────────────────────────────────

    def add_minter(self, address: str) -> None:
        """Authorize an address (usually the bridge) to mint."""
        self._minters.add(to_checksum_address(address))
        logger.info(f"Minter added: {address} for {self.symbol}")

    def is_minter(self, address: str) -> bool:
        return to_checksum_address(address) in self._minters

    def mint(self, operator: str, recipient: str, amount: int) -> TokenTransferEvent:
        if not self.is_minter(operator):
            raise UnauthorizedMinter(f"{operator} is not allowed to mint {self.symbol}")
        if amount <= 0:
            raise TokenError("Mint amount must be positive")

        recipient = to_checksum_address(recipient)
        self._total_supply += amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        return self._emit_transfer(ZERO_ADDRESS, recipient, amount)

    def burn_from(self, spender: str, owner: str, amount: int) -> TokenTransferEvent:
        """
        Destroy *amount* of the owner's tokens using the spender's allowance.
        """
        spender = to_checksum_address(spender)
        owner = to_checksum_address(owner)

        allowed = self._allowances.get((owner, spender), 0)
        if allowed < amount:
            raise InsufficientAllowance(f"Allowance {allowed} < burn amount {amount}")

        balance = self._balances.get(owner, 0)
        if balance < amount:
            raise InsufficientTokenBalance(f"{owner} balance {balance} < burn amount {amount}")

        self._balances[owner] = balance - amount
        self._allowances[(owner, spender)] = allowed - amount
        self._total_supply -= amount
        return self._emit_transfer(owner, ZERO_ADDRESS, amount)

    # ── Internals ─────────────────────────────────────────────────────

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TokenError("Transfer amount cannot be negative")
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientTokenBalance(f"{sender} balance {balance} < transfer amount {amount}")
        self._balances[sender] = balance - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    def _emit_transfer(self, sender: str, recipient: str, amount: int) -> TokenTransferEvent:
        event = TokenTransferEvent(token=self.symbol, sender=sender, recipient=recipient, amount=amount)
        self._events.append(event)
        logger.debug(f"transfer: {sender} -> {recipient} {amount} {self.symbol}")
        return event

    # ── Atomicity ─────────────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total_supply": self._total_supply,
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "events": len(self._events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._total_supply = snapshot["total_supply"]
        self._balances = dict(snapshot["balances"])
        self._allowances = dict(snapshot["allowances"])
        del self._events[snapshot["events"]:]

    def __repr__(self) -> str:
        return f"<Token {self.symbol} supply={self._total_supply}>"


# ══════════════════════════════════════════════════════════════════════
#  TOKEN REGISTRY
# ══════════════════════════════════════════════════════════════════════

class TokenRegistry:
    """
    Tokens reachable from the bridge, keyed by contract address.
    """

    def __init__(self):
        self._tokens: Dict[str, Token] = {}

    def deploy(self, token: Token) -> Token:
        """
        Register a token.

        Raises TokenError if the address is taken.
        """
        if token.address in self._tokens:
            raise TokenError(f"Token already registered at {token.address}")
        self._tokens[token.address] = token
        logger.info(f"Token registered: {token.symbol} ({token.address})")
        return token

    def get(self, address: str) -> Optional[Token]:
        return self._tokens.get(to_checksum_address(address))

    def get_or_raise(self, address: str) -> Token:
        token = self.get(address)
        if token is None:
            raise UnknownToken(f"No token registered at {address}")
        return token

    def exists(self, address: str) -> bool:
        return to_checksum_address(address) in self._tokens

    def all_tokens(self) -> List[Token]:
        return list(self._tokens.values())

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {address: token.snapshot() for address, token in self._tokens.items()}

    def restore(self, snapshot: Dict[str, Dict[str, Any]]) -> None:
        for address, token_snapshot in snapshot.items():
            self._tokens[address].restore(token_snapshot)

    def __repr__(self) -> str:
        return f"<TokenRegistry tokens={len(self._tokens)}>"
