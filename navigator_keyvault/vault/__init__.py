"""KeyVault - password-protected vault file for small named secrets.

Security Note (Threat Model):
    Secrets are decrypted in process memory while a session is unlocked.
    A memory dump of the process during that window could expose them.
    Locking drops the only reference to the decrypted store; it does not
    scrub memory already freed by the interpreter.
"""

from .session import VaultSession, VaultState
from .record import VaultRecord, CryptoParameters
from .crypto import EncryptedPayload, derive_key, encrypt, decrypt, verify_password
from .config import VaultConfig, get_vault_path, ensure_vault_dir

__all__ = [
    "VaultSession",
    "VaultState",
    "VaultRecord",
    "CryptoParameters",
    "EncryptedPayload",
    "derive_key",
    "encrypt",
    "decrypt",
    "verify_password",
    "VaultConfig",
    "get_vault_path",
    "ensure_vault_dir",
]
