"""
Tests for bridgegate.crypto: Keccak-256, EIP-55 addresses, secp256k1 keys
and personal_sign signatures.
"""

import pytest

from bridgegate.constants import ZERO_ADDRESS
from bridgegate.crypto import (
    PrivateKey,
    Signature,
    address_to_bytes,
    is_address,
    is_zero_address,
    keccak256,
    personal_message_hash,
    recover_message_signer,
    sign_message,
    to_checksum_address,
)
from bridgegate.exceptions import InvalidAddressError, InvalidKeyError, InvalidSignatureError

from conftest import VALIDATOR_ADDRESSES, VALIDATOR_KEYS


# ══════════════════════════════════════════════════════════════════════
#  1. HASHING
# ══════════════════════════════════════════════════════════════════════

class TestKeccak:

    def test_empty_input(self):
        assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"

    def test_hex_string_input(self):
        assert keccak256("0x") == keccak256(b"")
        assert keccak256("0x0102") == keccak256(b"\x01\x02")

    def test_digest_size(self):
        assert len(keccak256(b"bridge")) == 32


# ══════════════════════════════════════════════════════════════════════
#  2. ADDRESSES
# ══════════════════════════════════════════════════════════════════════

class TestAddresses:

    def test_checksum_known_addresses(self):
        for address in VALIDATOR_ADDRESSES:
            assert to_checksum_address(address.lower()) == address

    def test_checksum_without_prefix(self):
        raw = VALIDATOR_ADDRESSES[0].lower()[2:]
        assert to_checksum_address(raw) == VALIDATOR_ADDRESSES[0]

    def test_checksum_from_bytes(self):
        assert to_checksum_address(bytes(20)) == ZERO_ADDRESS
        assert to_checksum_address(address_to_bytes(VALIDATOR_ADDRESSES[1])) == VALIDATOR_ADDRESSES[1]

    def test_reject_short_address(self):
        with pytest.raises(InvalidAddressError, match="Invalid address"):
            to_checksum_address("0x1234")

    def test_reject_wrong_byte_length(self):
        with pytest.raises(InvalidAddressError, match="20 bytes"):
            to_checksum_address(bytes(19))

    def test_invalid_address_is_value_error(self):
        with pytest.raises(ValueError):
            to_checksum_address("not an address")

    def test_is_address(self):
        assert is_address(VALIDATOR_ADDRESSES[0])
        assert not is_address("0xzz")
        assert not is_address(42)

    def test_is_zero_address(self):
        assert is_zero_address(ZERO_ADDRESS)
        assert not is_zero_address(VALIDATOR_ADDRESSES[0])


# ══════════════════════════════════════════════════════════════════════
#  3. KEYS
# ══════════════════════════════════════════════════════════════════════

class TestKeys:

    @pytest.mark.parametrize("key_hex,address", list(zip(VALIDATOR_KEYS, VALIDATOR_ADDRESSES)))
    def test_known_key_addresses(self, key_hex, address):
        assert PrivateKey.from_hex(key_hex).address == address

    def test_from_hex_with_prefix(self):
        assert PrivateKey.from_hex("0x" + VALIDATOR_KEYS[0]) == PrivateKey.from_hex(VALIDATOR_KEYS[0])

    def test_hex_round_trip(self):
        key = PrivateKey.from_hex(VALIDATOR_KEYS[1])
        assert key.to_hex() == "0x" + VALIDATOR_KEYS[1]
        assert key.to_hex(with_prefix=False) == VALIDATOR_KEYS[1]

    def test_reject_wrong_length(self):
        with pytest.raises(InvalidKeyError, match="32 bytes"):
            PrivateKey(b"\x01" * 31)

    def test_reject_non_hex(self):
        with pytest.raises(InvalidKeyError, match="not hex"):
            PrivateKey.from_hex("validator")

    def test_from_file(self, tmp_path):
        path = tmp_path / "validator.key"
        path.write_text("0x" + VALIDATOR_KEYS[2] + "\n")
        assert PrivateKey.from_file(path).address == VALIDATOR_ADDRESSES[2]

    def test_generated_key_has_address(self):
        assert is_address(PrivateKey.generate().address)

    def test_generated_keys_differ(self):
        assert PrivateKey.generate().address != PrivateKey.generate().address


# ══════════════════════════════════════════════════════════════════════
#  4. SIGNATURES
# ══════════════════════════════════════════════════════════════════════

class TestSignatures:

    @pytest.fixture
    def key(self):
        return PrivateKey.from_hex(VALIDATOR_KEYS[0])

    @pytest.fixture
    def message(self):
        return keccak256(b"canonical message")

    def test_personal_hash_prefix(self, message):
        expected = keccak256(b"\x19Ethereum Signed Message:\n32" + message)
        assert personal_message_hash(message) == expected

    def test_sign_and_recover(self, key, message):
        signature = sign_message(key, message)
        assert recover_message_signer(message, signature) == key.address

    def test_recover_from_bytes_and_hex(self, key, message):
        signature = sign_message(key, message)
        assert recover_message_signer(message, signature.to_bytes()) == key.address
        assert recover_message_signer(message, signature.to_hex()) == key.address

    def test_v_encoded_as_27_or_28(self, key, message):
        raw = sign_message(key, message).to_bytes()
        assert len(raw) == 65
        assert raw[64] in (27, 28)

    def test_parse_accepts_raw_v(self, key, message):
        signature = sign_message(key, message)
        raw = signature.to_bytes()
        restored = Signature.parse(raw[:64] + bytes([raw[64] - 27]))
        assert restored == signature

    def test_parse_hex(self, key, message):
        signature = sign_message(key, message)
        assert Signature.parse(signature.to_hex()) == signature
        assert Signature.parse(signature) is signature

    def test_other_message_recovers_other_address(self, key, message):
        signature = sign_message(key, message)
        assert recover_message_signer(keccak256(b"something else"), signature) != key.address

    def test_recover_from_personal_hash(self, key, message):
        signature = sign_message(key, message)
        assert signature.recover_address(personal_message_hash(message)) == key.address

    def test_reject_short_signature(self, message):
        with pytest.raises(InvalidSignatureError, match="65 bytes"):
            recover_message_signer(message, b"\x00" * 64)

    def test_reject_non_hex_signature(self, message):
        with pytest.raises(InvalidSignatureError):
            recover_message_signer(message, "0xnothex")

    def test_sign_requires_32_byte_hash(self, key):
        with pytest.raises(ValueError, match="32 bytes"):
            key.sign_digest(b"short")
