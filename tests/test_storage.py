"""Tests for the encrypted vault file, the config file and atomic replacement."""

import json
import logging
import os
import stat

import pytest

from aliaser.core.config import KdfConfig
from aliaser.core.crypto.aes_gcm import CipherEngine
from aliaser.core.errors import (
    DecryptionError,
    VaultCorruptOrWrongKey,
    VaultIOError,
    VaultMalformedError,
)
from aliaser.core.models.identity import VaultData
from aliaser.core.storage import atomic
from aliaser.core.storage.config_store import ConfigStore, VaultConfig
from aliaser.core.storage.vault_store import VaultStore


@pytest.fixture
def store(tmp_path):
    return VaultStore(tmp_path / ".aliaser.vault")


@pytest.fixture
def populated(make_identity):
    data = VaultData()
    for service in ("GitHub", "GitLab", "bank"):
        data = data.with_identity(make_identity(service, notes=f"notes for {service}"))
    return data


# ── VaultStore ─────────────────────────────────────────────────────


class TestVaultStore:

    def test_save_then_load_returns_same_records(self, store, key, populated):
        store.save(populated, key)
        loaded = store.load(key)

        assert loaded == populated
        assert loaded.services() == ["GitHub", "GitLab", "bank"]

    def test_file_is_ciphertext_not_json(self, store, key, populated):
        store.save(populated, key)
        raw = store.path.read_bytes()

        assert b"GitHub" not in raw
        assert b"hunter2" not in raw

    def test_each_save_produces_a_different_blob(self, store, key, populated):
        store.save(populated, key)
        first = store.path.read_bytes()
        store.save(populated, key)
        assert store.path.read_bytes() != first

    def test_serialized_plaintext_is_encrypted_in_place_and_wiped(
        self, store, key, populated, monkeypatch
    ):
        seen = []
        real_encrypt = CipherEngine.encrypt

        def spy(self, plaintext, key):
            seen.append(plaintext)
            return real_encrypt(self, plaintext, key)

        monkeypatch.setattr(CipherEngine, "encrypt", spy)
        store.save(populated, key)

        assert len(seen) == 1
        assert isinstance(seen[0], bytearray)
        assert seen[0] == bytearray(len(seen[0]))
        assert store.load(key) == populated

    def test_wrong_key_raises_decryption_error(self, store, key, populated):
        store.save(populated, key)
        with pytest.raises(DecryptionError):
            store.load(os.urandom(32))

    def test_every_bit_flip_in_stored_blob_is_rejected(self, store, key, make_identity):
        store.save(VaultData().with_identity(make_identity("GitHub")), key)
        blob = store.read_raw()

        for bit in range(len(blob) * 8):
            tampered = bytearray(blob)
            tampered[bit // 8] ^= 1 << (bit % 8)
            with pytest.raises(VaultCorruptOrWrongKey):
                store.decode(bytes(tampered), key)

    @pytest.mark.parametrize("position", [0, 11, 12, -17, -1])
    def test_tampered_file_fails_to_load(self, store, key, populated, position):
        store.save(populated, key)
        tampered = bytearray(store.path.read_bytes())
        tampered[position] ^= 0x80
        store.path.write_bytes(bytes(tampered))

        with pytest.raises(DecryptionError):
            store.load(key)

    @pytest.mark.parametrize("plaintext", [
        b"not json at all",
        b'{"format_version": "1"}',
        b'{"identities": {"GitHub": {"service": "GitLab", "username": "a", "password": "b",'
        b' "created_at": "2024-01-01T00:00:00+00:00", "updated_at": "2024-01-01T00:00:00+00:00"}}}',
        b'{"identities": {"x": "not a record"}}',
        b"\xff\xfe",
    ])
    def test_authentic_but_unparseable_plaintext_is_malformed(self, store, key, plaintext):
        store.path.write_bytes(CipherEngine().encrypt(plaintext, key))
        with pytest.raises(VaultMalformedError):
            store.load(key)

    @pytest.mark.parametrize("overrides", [
        {"username": None},
        {"password": 1234},
        {"notes": {"nested": "object"}},
        {"custom_fields": {"pin": 1234}},
        {"personal_info": {"phone": 5550100}},
        {"personal_info": "Ada"},
    ])
    def test_records_with_wrong_value_types_are_malformed(self, store, key, overrides):
        record = {
            "service": "GitHub", "username": "alice", "password": "p@ss",
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        }
        record.update(overrides)
        document = {"format_version": "1", "identities": {"GitHub": record}}
        store.path.write_bytes(CipherEngine().encrypt(json.dumps(document).encode(), key))

        with pytest.raises(VaultMalformedError):
            store.load(key)

    def test_missing_file_is_io_error(self, store, key):
        with pytest.raises(VaultIOError):
            store.load(key)

    def test_plaintext_format(self, store, key, populated):
        store.save(populated, key)
        document = json.loads(CipherEngine().decrypt(store.read_raw(), key))

        assert document["format_version"] == "1"
        assert list(document["identities"]) == ["GitHub", "GitLab", "bank"]
        assert document["identities"]["GitHub"]["username"] == "user-github"


# ── Atomic replacement ─────────────────────────────────────────────


class TestAtomicSave:

    def test_crash_before_rename_keeps_previous_vault(self, store, key, populated, monkeypatch):
        store.save(populated, key)
        before = store.path.read_bytes()

        def power_loss(src, dst):
            raise OSError("simulated crash between write and rename")

        monkeypatch.setattr(atomic.os, "replace", power_loss)
        with pytest.raises(VaultIOError):
            store.save(VaultData(), key)
        monkeypatch.undo()

        assert store.path.read_bytes() == before
        assert store.load(key) == populated

    def test_failed_rename_leaves_no_temp_files(self, store, key, populated, monkeypatch):
        store.save(populated, key)

        def power_loss(src, dst):
            raise OSError("simulated crash")

        monkeypatch.setattr(atomic.os, "replace", power_loss)
        with pytest.raises(VaultIOError):
            store.save(VaultData(), key)
        monkeypatch.undo()

        assert sorted(p.name for p in store.path.parent.iterdir()) == [store.path.name]

    def test_staged_but_uncommitted_write_does_not_touch_target(self, store, key, populated):
        store.save(populated, key)
        before = store.path.read_bytes()

        tmp_path = store.stage_raw(store.encode(VaultData(), key))

        assert tmp_path.parent == store.path.parent
        assert store.path.read_bytes() == before
        assert store.load(key) == populated

    def test_write_atomic_creates_file(self, tmp_path):
        target = tmp_path / "out.bin"
        atomic.write_atomic(target, b"payload")
        assert target.read_bytes() == b"payload"

    def test_directory_fsync_failure_after_rename_is_logged(self, tmp_path, monkeypatch, caplog):
        target = tmp_path / "out.bin"
        target.write_bytes(b"old")

        def fsync_fails(directory):
            raise OSError("fsync not supported")

        monkeypatch.setattr(atomic, "_fsync_directory", fsync_fails)
        with caplog.at_level(logging.WARNING, logger="aliaser.storage"):
            atomic.write_atomic(target, b"new")

        assert target.read_bytes() == b"new"
        assert "could not fsync" in caplog.text
        assert sorted(p.name for p in tmp_path.iterdir()) == ["out.bin"]

    def test_save_succeeds_when_directory_fsync_fails(self, store, key, populated, monkeypatch):
        def fsync_fails(directory):
            raise OSError("fsync not supported")

        monkeypatch.setattr(atomic, "_fsync_directory", fsync_fails)
        store.save(populated, key)
        assert store.load(key) == populated

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_vault_file_is_owner_only(self, store, key, populated):
        store.save(populated, key)
        assert stat.S_IMODE(store.path.stat().st_mode) == 0o600


# ── ConfigStore ────────────────────────────────────────────────────


class TestConfigStore:

    def _config(self):
        return VaultConfig(
            master_password_hash="$argon2id$v=19$m=1024,t=1,p=1$c2FsdA$aGFzaA",
            salt=os.urandom(32),
            kdf=KdfConfig(time_cost=1, memory_cost=1024, parallelism=1),
        )

    def test_save_then_load(self, tmp_path):
        store = ConfigStore(tmp_path / ".aliaser.config")
        config = self._config()
        store.save(config)

        assert store.exists()
        assert store.load() == config

    def test_file_is_json_with_base64_salt(self, tmp_path):
        store = ConfigStore(tmp_path / ".aliaser.config")
        config = self._config()
        store.save(config)

        document = json.loads(store.path.read_text())
        assert set(document) == {"master_password_hash", "salt", "format_version", "kdf"}
        assert document["format_version"] == "1"
        assert document["kdf"] == {"time_cost": 1, "memory_cost": 1024, "parallelism": 1}

    @pytest.mark.parametrize("content", [
        b"{not json",
        b"[]",
        b'{"master_password_hash": "x", "salt": "!!!", "format_version": "1",'
        b' "kdf": {"time_cost": 1, "memory_cost": 1024, "parallelism": 1}}',
        b'{"master_password_hash": "x", "salt": "AAAA", "format_version": "1"}',
        b'{"master_password_hash": "x", "salt": "AAAA", "format_version": "1",'
        b' "kdf": {"time_cost": 1, "memory_cost": 1024, "parallelism": 1}}',
    ])
    def test_malformed_config(self, tmp_path, content):
        path = tmp_path / ".aliaser.config"
        path.write_bytes(content)
        with pytest.raises(VaultMalformedError):
            ConfigStore(path).load()

    def test_unsupported_format_version(self, tmp_path):
        store = ConfigStore(tmp_path / ".aliaser.config")
        document = json.loads(self._config().to_json())
        document["format_version"] = "99"
        store.path.write_text(json.dumps(document))

        with pytest.raises(VaultMalformedError, match="Unsupported"):
            store.load()

    def test_missing_config_is_io_error(self, tmp_path):
        with pytest.raises(VaultIOError):
            ConfigStore(tmp_path / "absent").load()

    def test_repr_hides_hash_and_salt(self):
        config = self._config()
        assert "argon2" not in repr(config)
        assert config.salt.hex() not in repr(config)
