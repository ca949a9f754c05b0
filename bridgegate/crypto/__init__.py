"""
Bridgegate Cryptography Module

secp256k1 keys and personal-message signatures (eth-keys), Keccak-256
(pycryptodome) and EIP-55 addresses.
"""

from .hashing import keccak256
from .keys import PrivateKey, Signature, SignatureLike
from .signing import personal_message_hash, sign_message, recover_message_signer
from .address import (
    public_key_to_address,
    to_checksum_address,
    is_address,
    is_zero_address,
    address_to_bytes,
)

__all__ = [
    "keccak256",
    "PrivateKey",
    "Signature",
    "SignatureLike",
    "personal_message_hash",
    "sign_message",
    "recover_message_signer",
    "public_key_to_address",
    "to_checksum_address",
    "is_address",
    "is_zero_address",
    "address_to_bytes",
]
