"""
VaultSession - locked/unlocked lifecycle of one vault file.

Provides the public API of the vault core:
- ``initialize(password)`` - create a new, empty vault and unlock it
- ``unlock(password)`` - decrypt the vault into a live ``SecretStore``
- ``lock()`` - drop the live store
- ``save(password)`` - re-encrypt the live store and rewrite the vault file
- ``get_unlocked_data()`` / ``is_unlocked()`` / ``exists()`` - queries

A session is a plain object owned by the caller; there is no module-level
instance. The decrypted store is only reachable through the session while
it is unlocked, and the password is never kept between calls.

Security Note:
    Never log passwords or secret values. Only log the vault path,
    operations and secret counts.
"""
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..conf import MIN_ITERATIONS
from ..exceptions import (
    DecryptionFailed,
    NotUnlocked,
    VaultAlreadyExists,
    VaultNotFound,
    WrongPassword,
)
from ..store import SecretStore
from .config import VaultConfig, ensure_vault_dir, get_vault_path
from .crypto import check_iterations, decrypt, encrypt, verify_password
from .record import VaultRecord, read_record, write_record

logger = logging.getLogger("navigator.keyvault")


class VaultState(str, Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class VaultSession:
    """Lifecycle manager for the vault file at ``vault_path``.

    States are ``LOCKED`` (initial) and ``UNLOCKED``. Transitions are
    synchronous; every failure leaves the session either locked or in the
    unlocked state it already had.
    """

    def __init__(
        self,
        vault_path: Optional[Union[str, Path]] = None,
        iterations: int = MIN_ITERATIONS,
    ):
        check_iterations(iterations)
        self._path = get_vault_path(vault_path)
        self._iterations = iterations
        self._store: Optional[SecretStore] = None

    @classmethod
    def from_config(cls, config: Optional[VaultConfig] = None) -> "VaultSession":
        """Build a session from a VaultConfig (environment defaults if None)."""
        config = config or VaultConfig.from_env()
        return cls(vault_path=config.vault_path, iterations=config.iterations)

    def __repr__(self) -> str:
        return f'<VaultSession [{self.state.value}] path={str(self._path)!r}>'

    def __enter__(self) -> "VaultSession":
        return self

    def __exit__(self, *exc) -> None:
        self.lock()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def state(self) -> VaultState:
        return VaultState.LOCKED if self._store is None else VaultState.UNLOCKED

    def is_unlocked(self) -> bool:
        return self._store is not None

    def exists(self) -> bool:
        """Whether a vault file is present at the session path."""
        return self._path.is_file()

    def get_unlocked_data(self) -> Optional[SecretStore]:
        """Return the live store while unlocked, None while locked.

        The store is not copied: callers mutate it directly and persist
        changes with ``save``.
        """
        return self._store

    def info(self) -> VaultRecord:
        """Read the vault record metadata without decrypting anything.

        Raises:
            VaultNotFound: If the vault file does not exist.
            VaultLoadError: If the vault file is malformed.
        """
        return read_record(self._path)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def initialize(self, password: str) -> None:
        """Create a new vault holding an empty store and unlock it.

        Raises:
            VaultAlreadyExists: If a vault file is already at the path.
        """
        if self.exists():
            raise VaultAlreadyExists(
                f"Vault already exists at {self._path}. Use unlock() instead."
            )
        ensure_vault_dir(self._path)
        store = SecretStore()
        payload = encrypt(store.to_json(), password, self._iterations)
        record = VaultRecord.create(payload, self._iterations)
        write_record(self._path, record)
        self._store = store
        logger.info("Vault initialized at %s", self._path)

    def unlock(self, password: str) -> None:
        """Decrypt the vault file into a live store.

        Unlocking an unlocked session is a no-op. The KDF work factor is
        taken from the record, not from the session.

        Raises:
            VaultNotFound: If the vault file does not exist.
            VaultLoadError: If the vault file (or its plaintext) is malformed.
            WeakParameters: If the record iterations are below the floor.
            DecryptionFailed: On wrong password or tampered data.
        """
        if not self.exists():
            raise VaultNotFound(
                f"Vault does not exist at {self._path}. Use initialize() first."
            )
        if self._store is not None:
            logger.debug("Vault %s is already unlocked", self._path)
            return
        record = read_record(self._path)
        try:
            plaintext = decrypt(record.payload, password, record.crypto.iterations)
        except DecryptionFailed:
            logger.warning("Failed to unlock vault %s", self._path)
            raise
        self._store = SecretStore.from_json(plaintext)
        logger.info(
            "Vault unlocked at %s: %d secret(s)", self._path, len(self._store),
        )

    def lock(self) -> None:
        """Drop the live store. No I/O; idempotent."""
        if self._store is not None:
            logger.debug("Vault locked at %s", self._path)
        self._store = None

    def save(self, password: str) -> None:
        """Re-encrypt the live store and rewrite the vault file.

        The current record is read to copy forward ``version``,
        ``createdAt`` and unknown fields; a fresh salt and IV are used.

        Raises:
            NotUnlocked: If the session is locked.
            VaultNotFound: If the vault file disappeared since unlock.
            VaultLoadError: If the current vault file is malformed.
        """
        if self._store is None:
            raise NotUnlocked("Vault is not unlocked. Cannot save.")
        current = read_record(self._path)
        payload = encrypt(self._store.to_json(), password, self._iterations)
        write_record(self._path, current.replace_payload(payload, self._iterations))
        logger.info(
            "Vault saved at %s: %d secret(s)", self._path, len(self._store),
        )

    def change_password(self, old_password: str, new_password: str) -> None:
        """Re-encrypt the unlocked vault under ``new_password``.

        Raises:
            NotUnlocked: If the session is locked.
            WrongPassword: If ``old_password`` does not open the vault file.
        """
        if self._store is None:
            raise NotUnlocked("Vault is not unlocked. Cannot change password.")
        record = read_record(self._path)
        if not verify_password(record.payload, old_password, record.crypto.iterations):
            raise WrongPassword()
        self.save(new_password)
        logger.info("Vault password changed at %s", self._path)

    def destroy(self, password: str) -> None:
        """Permanently delete the vault file after verifying ``password``.

        Raises:
            VaultNotFound: If the vault file does not exist.
            WrongPassword: If ``password`` does not open the vault file.
        """
        record = read_record(self._path)
        if not verify_password(record.payload, password, record.crypto.iterations):
            raise WrongPassword()
        self._path.unlink()
        self.lock()
        logger.info("Vault destroyed at %s", self._path)
