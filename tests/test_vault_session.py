"""
Comprehensive tests for VaultSession.

Tests cover:
- initialize / unlock / lock / save transitions
- Failure states leave the session locked or unchanged
- Whole-record rewrite on save (fresh salt/IV, preserved metadata)
- change_password, destroy and info
- End-to-end secret persistence
"""
import orjson
import pytest

from navigator_keyvault import SecretStore, VaultSession, VaultState
from navigator_keyvault.exceptions import (
    DecryptionFailed,
    NotUnlocked,
    VaultAlreadyExists,
    VaultLoadError,
    VaultNotFound,
    WeakParameters,
    WrongPassword,
)
from navigator_keyvault.vault.config import VaultConfig


def _read_doc(path) -> dict:
    return orjson.loads(path.read_bytes())


# --- Construction ---

class TestSessionCreation:
    """Tests for VaultSession construction."""

    def test_initial_state_locked(self, session):
        assert session.state is VaultState.LOCKED
        assert session.is_unlocked() is False
        assert session.get_unlocked_data() is None

    def test_exists_false_without_file(self, session):
        assert session.exists() is False

    def test_rejects_weak_iterations(self, vault_path):
        with pytest.raises(WeakParameters):
            VaultSession(vault_path, iterations=50_000)

    def test_from_config(self, vault_path):
        config = VaultConfig(vault_path=vault_path, iterations=120_000)
        session = VaultSession.from_config(config)
        assert session.path == vault_path
        assert session.iterations == 120_000

    def test_no_password_attribute(self, unlocked_session, password):
        """Test the password is never stored on the session."""
        assert password not in repr(vars(unlocked_session))


# --- Initialize ---

class TestInitialize:
    """Tests for VaultSession.initialize."""

    def test_initialize_creates_file(self, session, password, vault_path):
        session.initialize(password)
        assert vault_path.is_file()
        assert session.exists() is True

    def test_initialize_unlocks_with_empty_store(self, session, password):
        session.initialize(password)
        assert session.state is VaultState.UNLOCKED
        data = session.get_unlocked_data()
        assert isinstance(data, SecretStore)
        assert data.count() == 0

    def test_initialize_record_contents(self, session, password, vault_path):
        session.initialize(password)
        doc = _read_doc(vault_path)
        assert doc["version"] == "1.0.0"
        assert doc["crypto"]["algorithm"] == "aes-256-gcm"
        assert doc["crypto"]["kdf"] == "pbkdf2"
        assert doc["crypto"]["iterations"] == 100_000
        assert doc["createdAt"] == doc["updatedAt"]

    def test_initialize_existing_fails(self, unlocked_session, password, vault_path):
        before = vault_path.read_bytes()
        other = VaultSession(vault_path)
        with pytest.raises(VaultAlreadyExists):
            other.initialize(password)
        assert other.state is VaultState.LOCKED
        assert vault_path.read_bytes() == before

    def test_file_is_not_plaintext(self, unlocked_session, password, vault_path):
        unlocked_session.get_unlocked_data().set("token", "plain-token-value")
        unlocked_session.save(password)
        assert b"plain-token-value" not in vault_path.read_bytes()
        assert b"token" not in vault_path.read_bytes()


# --- Unlock ---

class TestUnlock:
    """Tests for VaultSession.unlock."""

    def test_unlock_missing_vault(self, session, password):
        with pytest.raises(VaultNotFound):
            session.unlock(password)
        assert session.state is VaultState.LOCKED

    def test_unlock_after_lock(self, unlocked_session, password):
        unlocked_session.lock()
        unlocked_session.unlock(password)
        assert unlocked_session.is_unlocked() is True
        assert unlocked_session.get_unlocked_data().count() == 0

    def test_unlock_is_idempotent(self, unlocked_session, password):
        store = unlocked_session.get_unlocked_data()
        unlocked_session.unlock(password)
        assert unlocked_session.get_unlocked_data() is store

    def test_unlock_wrong_password(self, unlocked_session):
        unlocked_session.lock()
        with pytest.raises(WrongPassword):
            unlocked_session.unlock("wrong password")
        assert unlocked_session.state is VaultState.LOCKED
        assert unlocked_session.get_unlocked_data() is None

    def test_unlock_tampered_file(self, unlocked_session, password, vault_path):
        unlocked_session.lock()
        doc = _read_doc(vault_path)
        doc["iv"] = "A" * len(doc["iv"])
        vault_path.write_bytes(orjson.dumps(doc))
        with pytest.raises(DecryptionFailed):
            unlocked_session.unlock(password)
        assert unlocked_session.is_unlocked() is False

    def test_unlock_malformed_json(self, unlocked_session, password, vault_path):
        unlocked_session.lock()
        vault_path.write_bytes(b"{ this is not json")
        with pytest.raises(VaultLoadError):
            unlocked_session.unlock(password)
        assert unlocked_session.is_unlocked() is False

    def test_unlock_missing_fields(self, unlocked_session, password, vault_path):
        unlocked_session.lock()
        doc = _read_doc(vault_path)
        del doc["authTag"]
        vault_path.write_bytes(orjson.dumps(doc))
        with pytest.raises(VaultLoadError):
            unlocked_session.unlock(password)

    def test_load_error_is_not_decryption_failure(
        self, unlocked_session, password, vault_path
    ):
        unlocked_session.lock()
        vault_path.write_bytes(b"[]")
        with pytest.raises(VaultLoadError) as err:
            unlocked_session.unlock(password)
        assert not isinstance(err.value, DecryptionFailed)

    def test_unlock_weak_record_iterations(self, unlocked_session, password, vault_path):
        unlocked_session.lock()
        doc = _read_doc(vault_path)
        doc["crypto"]["iterations"] = 1_000
        vault_path.write_bytes(orjson.dumps(doc))
        with pytest.raises(WeakParameters):
            unlocked_session.unlock(password)

    def test_unlock_uses_record_iterations(self, vault_path, password):
        writer = VaultSession(vault_path, iterations=120_000)
        writer.initialize(password)
        reader = VaultSession(vault_path)
        reader.unlock(password)
        assert reader.is_unlocked() is True


# --- Lock ---

class TestLock:
    """Tests for VaultSession.lock."""

    def test_lock_drops_store(self, unlocked_session):
        unlocked_session.lock()
        assert unlocked_session.state is VaultState.LOCKED
        assert unlocked_session.get_unlocked_data() is None

    def test_lock_is_idempotent(self, session):
        session.lock()
        session.lock()
        assert session.is_unlocked() is False

    def test_lock_does_not_touch_file(self, unlocked_session, vault_path):
        before = vault_path.read_bytes()
        unlocked_session.get_unlocked_data().set("unsaved", "value")
        unlocked_session.lock()
        assert vault_path.read_bytes() == before

    def test_context_manager_locks(self, vault_path, password):
        with VaultSession(vault_path) as session:
            session.initialize(password)
            assert session.is_unlocked() is True
        assert session.is_unlocked() is False


# --- Save ---

class TestSave:
    """Tests for VaultSession.save."""

    def test_save_when_locked(self, session, password):
        with pytest.raises(NotUnlocked):
            session.save(password)

    def test_save_after_lock(self, unlocked_session, password):
        unlocked_session.lock()
        with pytest.raises(NotUnlocked):
            unlocked_session.save(password)

    def test_save_rotates_crypto_fields(self, unlocked_session, password, vault_path):
        before = _read_doc(vault_path)
        unlocked_session.save(password)
        after = _read_doc(vault_path)
        for field in ("data", "authTag", "iv"):
            assert after[field] != before[field]
        assert after["crypto"]["salt"] != before["crypto"]["salt"]

    def test_save_preserves_version_and_created(
        self, unlocked_session, password, vault_path
    ):
        doc = _read_doc(vault_path)
        doc["version"] = "1.0.7"
        vault_path.write_bytes(orjson.dumps(doc))
        unlocked_session.save(password)
        after = _read_doc(vault_path)
        assert after["version"] == "1.0.7"
        assert after["createdAt"] == doc["createdAt"]
        assert after["updatedAt"] >= doc["updatedAt"]

    def test_save_keeps_unknown_fields(self, unlocked_session, password, vault_path):
        doc = _read_doc(vault_path)
        doc["sync"] = {"remote": "origin"}
        vault_path.write_bytes(orjson.dumps(doc))
        unlocked_session.save(password)
        assert _read_doc(vault_path)["sync"] == {"remote": "origin"}

    def test_save_missing_file(self, unlocked_session, password, vault_path):
        vault_path.unlink()
        with pytest.raises(VaultNotFound):
            unlocked_session.save(password)
        assert unlocked_session.is_unlocked() is True


# --- Change Password / Destroy / Info ---

class TestChangePassword:
    """Tests for VaultSession.change_password."""

    def test_change_password(self, unlocked_session, password, vault_path):
        unlocked_session.get_unlocked_data().set("k", "v")
        unlocked_session.change_password(password, "new password")
        unlocked_session.lock()
        with pytest.raises(WrongPassword):
            unlocked_session.unlock(password)
        unlocked_session.unlock("new password")
        assert unlocked_session.get_unlocked_data().get("k") == "v"

    def test_change_password_wrong_old(self, unlocked_session, password, vault_path):
        before = vault_path.read_bytes()
        with pytest.raises(WrongPassword):
            unlocked_session.change_password("wrong", "new password")
        assert vault_path.read_bytes() == before
        assert unlocked_session.is_unlocked() is True

    def test_change_password_locked(self, session, password):
        with pytest.raises(NotUnlocked):
            session.change_password(password, "new")


class TestDestroy:
    """Tests for VaultSession.destroy."""

    def test_destroy(self, unlocked_session, password, vault_path):
        unlocked_session.destroy(password)
        assert not vault_path.exists()
        assert unlocked_session.is_unlocked() is False

    def test_destroy_wrong_password(self, unlocked_session, vault_path):
        with pytest.raises(WrongPassword):
            unlocked_session.destroy("wrong")
        assert vault_path.exists()
        assert unlocked_session.is_unlocked() is True

    def test_destroy_missing(self, session, password):
        with pytest.raises(VaultNotFound):
            session.destroy(password)


class TestInfo:
    """Tests for VaultSession.info."""

    def test_info_while_locked(self, unlocked_session):
        unlocked_session.lock()
        record = unlocked_session.info()
        assert record.version == "1.0.0"
        assert record.crypto.iterations == 100_000
        assert unlocked_session.is_unlocked() is False

    def test_info_missing(self, session):
        with pytest.raises(VaultNotFound):
            session.info()


# --- End to End ---

class TestEndToEnd:
    """Full lifecycle scenario."""

    def test_store_and_retrieve_secret(self, vault_path, password):
        session = VaultSession(vault_path)
        session.initialize(password)
        result = session.get_unlocked_data().set("db-password", "super-secret-123")
        assert result.value == "created"
        session.save(password)
        session.lock()

        session.unlock(password)
        assert session.get_unlocked_data().get("db-password") == "super-secret-123"
        session.lock()

        with pytest.raises(DecryptionFailed):
            session.unlock("not the password")
        assert session.get_unlocked_data() is None

    def test_separate_sessions_share_file(self, vault_path, password):
        writer = VaultSession(vault_path)
        writer.initialize(password)
        data = writer.get_unlocked_data()
        for name in ("zebra", "apple", "banana"):
            data.set(name, f"{name}-value")
        writer.save(password)
        writer.lock()

        reader = VaultSession(vault_path)
        reader.unlock(password)
        assert reader.get_unlocked_data().names() == ["apple", "banana", "zebra"]

    def test_unsaved_changes_are_lost_on_lock(self, unlocked_session, password):
        unlocked_session.get_unlocked_data().set("temp", "value")
        unlocked_session.lock()
        unlocked_session.unlock(password)
        assert "temp" not in unlocked_session.get_unlocked_data()
