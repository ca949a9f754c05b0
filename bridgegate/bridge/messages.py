"""
Canonical bridge messages.

Each quorum-gated operation has a pure builder that maps its parameters and
nonce to the 32-byte digest validators sign off-ledger:

    keccak256(tag || packed parameters || nonce)

Packing is tight: addresses are 20 raw bytes, integers are 32-byte big-endian
words, booleans a single byte, and text or byte nonces a right-padded 32-byte
word. The same builders back the bridge's `get_*_message` accessors and the
validator CLI, so a digest computed anywhere is bit-identical.
"""

from typing import Callable, Dict, Union

from ..constants import UINT256_MAX, WORD_SIZE
from ..crypto.address import address_to_bytes
from ..crypto.hashing import keccak256
from .types import Nonce

TAG_VOTE_VALIDATOR = b"VOTE_VALIDATOR"
TAG_VOTE_REWARD = b"VOTE_REWARD"
TAG_ALLOWED_TRANSFER = b"ALLOWED_TRANSFER"
TAG_LOCK = b"LOCK"
TAG_MODIFY_REWARDS_AND_LOCK = b"MODIFY_REWARDS_AND_LOCK"
TAG_MINTABLE_TOKEN = b"MINTABLE_TOKEN"
TAG_TRANSACTION = b"TRANSACTION"
TAG_RECOVER_FUNDS = b"RECOVER_FUNDS"
TAG_BLOCK_TRANSFER = b"BLOCK_TRANSFER"
TAG_UPGRADE = b"UPGRADE"


# ── Packing ──────────────────────────────────────────────────────────

def pack_uint256(value: int) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected an integer, got {type(value).__name__}")
    if not 0 <= value <= UINT256_MAX:
        raise ValueError(f"Integer out of uint256 range: {value}")
    return value.to_bytes(WORD_SIZE, "big")


def pack_address(value: str) -> bytes:
    return address_to_bytes(value)


def pack_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def pack_bytes32(value: Union[bytes, str]) -> bytes:
    if isinstance(value, str):
        value = value.encode("utf-8")
    if len(value) > WORD_SIZE:
        raise ValueError(f"bytes32 value is {len(value)} bytes long")
    return bytes(value).ljust(WORD_SIZE, b"\x00")


def normalize_nonce(nonce: Union[Nonce, str]) -> Nonce:
    """
    Canonical form of a nonce: integers stay integers, text and bytes become
    a 32-byte word. Ledger keys and messages both use this form.
    """
    if isinstance(nonce, int) and not isinstance(nonce, bool):
        pack_uint256(nonce)
        return nonce
    if isinstance(nonce, (bytes, bytearray, str)):
        return pack_bytes32(nonce)
    raise TypeError(f"Unsupported nonce type: {type(nonce).__name__}")


def pack_nonce(nonce: Union[Nonce, str]) -> bytes:
    nonce = normalize_nonce(nonce)
    if isinstance(nonce, int):
        return pack_uint256(nonce)
    return nonce


def _digest(tag: bytes, *parts: bytes) -> bytes:
    return keccak256(tag + b"".join(parts))


# ── Builders ─────────────────────────────────────────────────────────

def vote_validator_message(vote_type: int, validator: str, nonce: Nonce) -> bytes:
    return _digest(TAG_VOTE_VALIDATOR, pack_uint256(int(vote_type)), pack_address(validator), pack_nonce(nonce))


def vote_reward_message(value: int, nonce: Nonce) -> bytes:
    return _digest(TAG_VOTE_REWARD, pack_uint256(value), pack_nonce(nonce))


def allowed_transfer_message(
    source_chain: int,
    destination_chain: int,
    asset_in: str,
    asset_out: str,
    active: bool,
    max_amount: int,
    nonce: Nonce,
) -> bytes:
    return _digest(
        TAG_ALLOWED_TRANSFER,
        pack_uint256(source_chain),
        pack_uint256(destination_chain),
        pack_address(asset_in),
        pack_address(asset_out),
        pack_bool(active),
        pack_uint256(max_amount),
        pack_nonce(nonce),
    )


def lock_message(nonce: Nonce) -> bytes:
    return _digest(TAG_LOCK, pack_nonce(nonce))


def modify_rewards_and_lock_message(value: int, lock: bool, nonce: Nonce) -> bytes:
    return _digest(TAG_MODIFY_REWARDS_AND_LOCK, pack_uint256(value), pack_bool(lock), pack_nonce(nonce))


def mintable_token_message(asset: str, mintable: bool, nonce: Nonce) -> bytes:
    return _digest(TAG_MINTABLE_TOKEN, pack_address(asset), pack_bool(mintable), pack_nonce(nonce))


def transaction_message(
    recipient: str,
    amount: int,
    source_chain: int,
    destination_chain: int,
    asset_in: str,
    asset_out: str,
    nonce: Nonce,
) -> bytes:
    """Message behind `complete_transfer`."""
    return _digest(
        TAG_TRANSACTION,
        pack_address(recipient),
        pack_uint256(amount),
        pack_uint256(source_chain),
        pack_uint256(destination_chain),
        pack_address(asset_in),
        pack_address(asset_out),
        pack_nonce(nonce),
    )


def recover_funds_message(
    recipient: str,
    amount: int,
    source_chain: int,
    destination_chain: int,
    asset_in: str,
    nonce: Nonce,
) -> bytes:
    return _digest(
        TAG_RECOVER_FUNDS,
        pack_address(recipient),
        pack_uint256(amount),
        pack_uint256(source_chain),
        pack_uint256(destination_chain),
        pack_address(asset_in),
        pack_nonce(nonce),
    )


def block_transfer_message(source_chain: int, destination_chain: int, nonce: Nonce) -> bytes:
    return _digest(TAG_BLOCK_TRANSFER, pack_uint256(source_chain), pack_uint256(destination_chain), pack_nonce(nonce))


def upgrade_message(new_implementation: str, nonce: Nonce) -> bytes:
    """Binds the implementation address and the nonce, nothing else."""
    return _digest(TAG_UPGRADE, pack_address(new_implementation), pack_nonce(nonce))


# Category name -> builder, used by the validator CLI
MESSAGE_BUILDERS: Dict[str, Callable[..., bytes]] = {
    "vote-validator": vote_validator_message,
    "vote-reward": vote_reward_message,
    "allowed-transfer": allowed_transfer_message,
    "lock": lock_message,
    "modify-rewards-and-lock": modify_rewards_and_lock_message,
    "mintable-token": mintable_token_message,
    "transaction": transaction_message,
    "recover-funds": recover_funds_message,
    "block-transfer": block_transfer_message,
    "upgrade": upgrade_message,
}
