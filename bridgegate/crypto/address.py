"""
Bridgegate Crypto Address Module

Ethereum-style 20-byte addresses with EIP-55 checksums. Every identity the
bridge stores (validators, recipients, assets) is kept in checksummed form so
membership tests compare like with like.
"""

import re
from typing import Union

from ..constants import ADDRESS_SIZE, ZERO_ADDRESS
from ..exceptions import InvalidAddressError
from .hashing import keccak256

_HEX_ADDRESS_RE = re.compile(r"^(0x)?[0-9a-fA-F]{40}$")


def public_key_to_address(pub_bytes: bytes) -> str:
    """Last 20 bytes of keccak256 over a 64-byte uncompressed secp256k1 key."""
    if len(pub_bytes) == 65 and pub_bytes[0] == 0x04:
        pub_bytes = pub_bytes[1:]
    if len(pub_bytes) != 64:
        raise InvalidAddressError(f"secp256k1 public key must be 64 bytes, got {len(pub_bytes)}")

    return to_checksum_address(keccak256(pub_bytes)[-ADDRESS_SIZE:])


def to_checksum_address(address: Union[str, bytes]) -> str:
    """
    Convert an address to EIP-55 checksum format.

    Args:
        address: Hex address (with or without 0x prefix) or 20 raw bytes

    Returns:
        Checksum address with 0x prefix
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != ADDRESS_SIZE:
            raise InvalidAddressError(f"Address must be {ADDRESS_SIZE} bytes, got {len(address)}")
        address = bytes(address).hex()
    elif not isinstance(address, str) or not _HEX_ADDRESS_RE.match(address):
        raise InvalidAddressError(f"Invalid address: {address!r}")

    address = address.lower()
    if address.startswith("0x"):
        address = address[2:]

    address_hash = keccak256(address.encode('utf-8')).hex()
    checksummed = ''.join(
        char.upper() if char.isalpha() and int(address_hash[i], 16) >= 8 else char
        for i, char in enumerate(address)
    )
    return "0x" + checksummed


def is_address(value) -> bool:
    """Check if value is a 20-byte hex address (checksum not enforced)."""
    return isinstance(value, str) and bool(_HEX_ADDRESS_RE.match(value))


def is_zero_address(address: str) -> bool:
    """Check if address is the zero address."""
    return to_checksum_address(address) == ZERO_ADDRESS


def address_to_bytes(address: str) -> bytes:
    """Return the 20 raw bytes of an address."""
    return bytes.fromhex(to_checksum_address(address)[2:])
