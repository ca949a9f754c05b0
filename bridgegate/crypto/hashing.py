"""
Bridgegate Crypto Hashing Module

Keccak-256, the digest behind canonical bridge messages, personal-message
signing and address derivation.
"""

from typing import Union

from Crypto.Hash import keccak as _keccak
from eth_utils import decode_hex


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes or hex string

    Returns:
        32-byte hash
    """
    if isinstance(data, str):
        data = decode_hex(data)

    k = _keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()
