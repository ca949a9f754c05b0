"""
Bridgegate Crypto Signing Module

Personal-message signing and signer recovery. Validators sign canonical bridge
messages off-ledger with `sign_message`; the bridge recovers each signer with
`recover_message_signer` and compares the address with its validator set.
"""

from ..constants import PERSONAL_MESSAGE_PREFIX
from .hashing import keccak256
from .keys import PrivateKey, Signature, SignatureLike


def personal_message_hash(message: bytes) -> bytes:
    """
    Digest a wallet signs for `message` under personal_sign:
    keccak256("\\x19Ethereum Signed Message:\\n" + len(message) + message).
    """
    return keccak256(PERSONAL_MESSAGE_PREFIX + str(len(message)).encode() + message)


def sign_message(private_key: PrivateKey, message: bytes) -> Signature:
    """
    Sign a canonical bridge message as a validator.

    Args:
        private_key: Validator key
        message: Raw message bytes, usually a 32-byte canonical digest
    """
    return private_key.sign_digest(personal_message_hash(message))


def recover_message_signer(message: bytes, signature: SignatureLike) -> str:
    """
    Recover the checksummed signer address of a personal_sign signature.

    Raises:
        InvalidSignatureError: If the signature is malformed or unrecoverable
    """
    return Signature.parse(signature).recover_address(personal_message_hash(message))
