"""Tests for AES-256-GCM blob encryption, Argon2id key derivation and the verification hash."""

import os

import pytest

from aliaser.core.auth.argon2_auth import Argon2Hasher
from aliaser.core.crypto.aes_gcm import AES_NONCE_SIZE, AES_TAG_SIZE, CipherEngine
from aliaser.core.crypto.kdf import SALT_SIZE, derive_key, generate_salt
from aliaser.core.errors import DecryptionError

from conftest import FAST_HASHER, FAST_KDF


# ── CipherEngine ───────────────────────────────────────────────────


class TestCipherEngine:

    @pytest.mark.parametrize("payload", [b"", b"x", b"Hello, World!", os.urandom(4096)])
    def test_decrypt_returns_original_payload(self, key, payload):
        cipher = CipherEngine()
        assert cipher.decrypt(cipher.encrypt(payload, key), key) == payload

    def test_blob_layout_is_nonce_ciphertext_tag(self, key):
        blob = CipherEngine().encrypt(b"abcdef", key)
        assert len(blob) == AES_NONCE_SIZE + 6 + AES_TAG_SIZE

    def test_every_encryption_uses_a_fresh_nonce(self, key):
        cipher = CipherEngine()
        nonces = {cipher.encrypt(b"same", key)[:AES_NONCE_SIZE] for _ in range(50)}
        assert len(nonces) == 50

    def test_wrong_key_fails_authentication(self, key):
        blob = CipherEngine().encrypt(b"secret", key)
        with pytest.raises(DecryptionError):
            CipherEngine().decrypt(blob, os.urandom(32))

    def test_every_single_bit_flip_is_rejected(self, key):
        cipher = CipherEngine()
        blob = cipher.encrypt(b"identity records", key)
        for bit in range(len(blob) * 8):
            tampered = bytearray(blob)
            tampered[bit // 8] ^= 1 << (bit % 8)
            with pytest.raises(DecryptionError):
                cipher.decrypt(bytes(tampered), key)

    def test_wrong_key_and_tampering_are_indistinguishable(self, key):
        cipher = CipherEngine()
        blob = cipher.encrypt(b"payload", key)
        tampered = blob[:-1] + bytes([blob[-1] ^ 0x01])

        with pytest.raises(DecryptionError) as wrong_key:
            cipher.decrypt(blob, os.urandom(32))
        with pytest.raises(DecryptionError) as tampered_blob:
            cipher.decrypt(tampered, key)

        assert str(wrong_key.value) == str(tampered_blob.value)

    def test_truncated_blob_is_a_decryption_error(self, key):
        with pytest.raises(DecryptionError):
            CipherEngine().decrypt(b"\x00" * (AES_NONCE_SIZE + AES_TAG_SIZE - 1), key)

    def test_key_must_be_256_bits(self):
        with pytest.raises(ValueError):
            CipherEngine().encrypt(b"data", os.urandom(16))


# ── Key derivation ─────────────────────────────────────────────────


class TestKeyDerivation:

    def test_salt_is_256_bits_and_random(self):
        salts = {generate_salt() for _ in range(20)}
        assert len(salts) == 20
        assert all(len(s) == SALT_SIZE == 32 for s in salts)

    def test_derive_key_is_deterministic(self):
        salt = generate_salt()
        first = derive_key("Sup3rSecret!", salt, FAST_KDF)
        assert len(first) == 32
        assert all(derive_key("Sup3rSecret!", salt, FAST_KDF) == first for _ in range(3))

    def test_changing_password_or_salt_changes_key(self):
        salt = generate_salt()
        base = derive_key("Sup3rSecret!", salt, FAST_KDF)
        assert derive_key("Sup3rSecret?", salt, FAST_KDF) != base
        assert derive_key("Sup3rSecret!", generate_salt(), FAST_KDF) != base

    def test_cost_parameters_are_part_of_the_derivation(self):
        from aliaser.core.config import KdfConfig

        salt = generate_salt()
        heavier = KdfConfig(time_cost=2, memory_cost=1024, parallelism=1)
        assert derive_key("pw-12345", salt, FAST_KDF) != derive_key("pw-12345", salt, heavier)

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            derive_key("", generate_salt(), FAST_KDF)

    def test_short_salt_rejected(self):
        with pytest.raises(ValueError):
            derive_key("pw-12345", b"short", FAST_KDF)


# ── Verification hash ──────────────────────────────────────────────


class TestArgon2Hasher:

    def test_verify_accepts_correct_and_rejects_wrong_password(self):
        hasher = Argon2Hasher(FAST_HASHER)
        encoded = hasher.hash("super_secret_password")

        assert encoded.startswith("$argon2id$")
        assert hasher.verify("super_secret_password", encoded) is True
        assert hasher.verify("wrong_password", encoded) is False

    def test_hash_is_salted_per_call(self):
        hasher = Argon2Hasher(FAST_HASHER)
        assert hasher.hash("same-password") != hasher.hash("same-password")

    def test_malformed_hash_does_not_verify(self):
        hasher = Argon2Hasher(FAST_HASHER)
        assert hasher.verify("password", "not-a-hash") is False
        assert hasher.verify("password", "") is False
        assert hasher.verify("", hasher.hash("password")) is False

    def test_hash_never_contains_the_encryption_key(self):
        salt = generate_salt()
        encoded = Argon2Hasher(FAST_HASHER).hash("Sup3rSecret!")
        key = derive_key("Sup3rSecret!", salt, FAST_KDF)

        import base64
        assert base64.b64encode(key).decode().rstrip("=") not in encoded
        assert key.hex() not in encoded

    def test_hash_from_other_parameters_still_verifies(self):
        from aliaser.core.config import HasherConfig

        old = Argon2Hasher(HasherConfig(time_cost=2, memory_cost=2048, parallelism=1))
        encoded = old.hash("rotated-params")

        current = Argon2Hasher(FAST_HASHER)
        assert current.verify("rotated-params", encoded) is True
        assert current.needs_rehash(encoded) is True
        assert old.needs_rehash(encoded) is False

    def test_empty_password_cannot_be_hashed(self):
        with pytest.raises(ValueError):
            Argon2Hasher(FAST_HASHER).hash("")

    def test_module_helpers(self):
        from aliaser.core.auth.argon2_auth import hash_password, verify_password

        encoded = hash_password("helper-password", FAST_HASHER)
        assert verify_password("helper-password", encoded) is True
        assert verify_password("other-password", encoded) is False
