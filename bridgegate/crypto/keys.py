"""
Bridgegate Crypto Keys Module

Validator signing keys and recoverable signatures over secp256k1 (eth-keys).

Signatures travel as 65 bytes, r || s || v, with v written as 27 or 28 the
way personal_sign wallets emit it. Both 0/1 and 27/28 are accepted on input.
"""

import secrets
from pathlib import Path
from typing import Tuple, Union

from eth_keys.datatypes import PrivateKey as EthPrivateKey
from eth_keys.datatypes import Signature as EthSignature
from eth_keys.exceptions import BadSignature
from eth_utils import ValidationError as EthValidationError
from eth_utils import decode_hex

from ..constants import HASH_SIZE, PRIVATE_KEY_SIZE, SIGNATURE_SIZE
from ..exceptions import InvalidKeyError, InvalidSignatureError
from .address import public_key_to_address

SignatureLike = Union["Signature", bytes, str]

_V_OFFSET = 27


class PrivateKey:
    """
    A validator's secp256k1 signing key.

    Raises:
        InvalidKeyError: If the key is not a valid 32-byte scalar
    """

    def __init__(self, key_bytes: bytes):
        if len(key_bytes) != PRIVATE_KEY_SIZE:
            raise InvalidKeyError(f"Private key must be {PRIVATE_KEY_SIZE} bytes, got {len(key_bytes)}")
        try:
            self._key = EthPrivateKey(key_bytes)
        except (EthValidationError, ValueError) as e:
            raise InvalidKeyError(f"Invalid private key: {e}") from e
        self._address = public_key_to_address(self._key.public_key.to_bytes())

    @classmethod
    def from_hex(cls, value: str) -> "PrivateKey":
        try:
            key_bytes = decode_hex(value.strip())
        except ValueError as e:
            raise InvalidKeyError(f"Private key is not hex: {e}") from e
        return cls(key_bytes)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PrivateKey":
        """Read a hex key from the first line of a key file."""
        text = Path(path).read_text(encoding="utf-8")
        return cls.from_hex(text.splitlines()[0] if text.strip() else "")

    @classmethod
    def generate(cls) -> "PrivateKey":
        return cls(secrets.token_bytes(PRIVATE_KEY_SIZE))

    @property
    def address(self) -> str:
        """Checksummed address that identifies this validator."""
        return self._address

    def to_hex(self, with_prefix: bool = True) -> str:
        raw = self._key.to_bytes().hex()
        return "0x" + raw if with_prefix else raw

    def sign_digest(self, digest: bytes) -> "Signature":
        """Sign a 32-byte digest as is, with no message prefix."""
        if len(digest) != HASH_SIZE:
            raise ValueError(f"Digest must be {HASH_SIZE} bytes, got {len(digest)}")
        return Signature(self._key.sign_msg_hash(digest))

    def __eq__(self, other) -> bool:
        return isinstance(other, PrivateKey) and self._address == other._address

    def __hash__(self) -> int:
        return hash(self._address)

    def __repr__(self) -> str:
        return f"PrivateKey({self._address})"


class Signature:
    """Recoverable ECDSA signature over a 32-byte digest."""

    def __init__(self, signature: EthSignature):
        self._signature = signature

    @classmethod
    def from_vrs(cls, v: int, r: int, s: int) -> "Signature":
        """
        Raises:
            InvalidSignatureError: If a component is out of range
        """
        if v >= _V_OFFSET:
            v -= _V_OFFSET
        try:
            return cls(EthSignature(vrs=(v, r, s)))
        except (BadSignature, EthValidationError, ValueError) as e:
            raise InvalidSignatureError(f"Invalid signature components: {e}") from e

    @classmethod
    def parse(cls, value: SignatureLike) -> "Signature":
        """
        Accept a Signature, 65 raw bytes or a hex string.

        Raises:
            InvalidSignatureError: If the value cannot be decoded
        """
        if isinstance(value, Signature):
            return value
        if isinstance(value, str):
            try:
                value = decode_hex(value.strip())
            except ValueError as e:
                raise InvalidSignatureError(f"Signature is not hex: {e}") from e
        raw = bytes(value)
        if len(raw) != SIGNATURE_SIZE:
            raise InvalidSignatureError(f"Signature must be {SIGNATURE_SIZE} bytes, got {len(raw)}")
        return cls.from_vrs(raw[64], int.from_bytes(raw[:32], "big"), int.from_bytes(raw[32:64], "big"))

    @property
    def vrs(self) -> Tuple[int, int, int]:
        """(v, r, s) with v as 0 or 1."""
        return self._signature.vrs

    def recover_address(self, digest: bytes) -> str:
        """
        Address of the key that signed `digest`.

        Raises:
            InvalidSignatureError: If no public key can be recovered
        """
        try:
            public_key = self._signature.recover_public_key_from_msg_hash(digest)
        except (BadSignature, EthValidationError, ValueError) as e:
            raise InvalidSignatureError(f"Cannot recover signer: {e}") from e
        return public_key_to_address(public_key.to_bytes())

    def to_bytes(self) -> bytes:
        v, r, s = self.vrs
        return r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([v + _V_OFFSET])

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    def __eq__(self, other) -> bool:
        return isinstance(other, Signature) and self.vrs == other.vrs

    def __repr__(self) -> str:
        v, r, _ = self.vrs
        return f"Signature(v={v}, r={hex(r)[:10]}...)"
