"""
Vault Crypto Core - Key derivation and authenticated encryption.

Implements the password-based scheme protecting the vault file:
- Key derivation: PBKDF2-HMAC-SHA256(password, salt 32B, iterations) → 32B key
- Encryption: AES-256-GCM(key, iv 12B) → ciphertext + 128-bit tag

Every call to ``encrypt`` draws a fresh salt and a fresh IV, so encrypting
the same plaintext twice under the same password never yields the same
ciphertext.

Security Note:
    Never log passwords, derived keys, plaintext or ciphertext values.
    Decryption failures are opaque: wrong password, tampered ciphertext,
    tag or IV all raise the same ``DecryptionFailed``.
"""
import os
import base64
import binascii
import logging
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..conf import MIN_ITERATIONS
from ..exceptions import DecryptionFailed, WeakParameters

logger = logging.getLogger("navigator.keyvault")

KEY_LENGTH = 32  # AES-256
SALT_SIZE = 32
IV_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag


class EncryptedPayload(BaseModel):
    """Ciphertext, tag, IV and salt of one encryption, base64-encoded.

    The four fields travel together; none of them decrypts anything alone.
    """

    ciphertext: str
    auth_tag: str
    iv: str
    salt: str

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------

def b64encode(data: bytes) -> str:
    """Encode raw bytes for storage."""
    return base64.b64encode(data).decode("ascii")


def b64decode(data: str) -> bytes:
    """Decode a stored base64 string, rejecting non-alphabet characters."""
    return base64.b64decode(data.encode("ascii"), validate=True)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def check_iterations(iterations: int) -> int:
    """Return ``iterations`` when it meets the work factor floor.

    Raises:
        WeakParameters: If iterations is below ``MIN_ITERATIONS``.
    """
    if iterations < MIN_ITERATIONS:
        raise WeakParameters(
            f"PBKDF2 iterations must be at least {MIN_ITERATIONS:,}, "
            f"got {iterations:,}"
        )
    return iterations


def derive_key(
    password: str,
    salt: Optional[bytes] = None,
    iterations: int = MIN_ITERATIONS,
) -> tuple[bytes, bytes]:
    """Derive a 32-byte encryption key from a password using PBKDF2-SHA256.

    Args:
        password: Master password.
        salt: Salt to derive with; 32 random bytes are drawn when omitted.
        iterations: PBKDF2 rounds, at least ``MIN_ITERATIONS``.

    Returns:
        Tuple of (key, salt).

    Raises:
        WeakParameters: If iterations is below ``MIN_ITERATIONS``.
    """
    check_iterations(iterations)
    if salt is None:
        salt = os.urandom(SALT_SIZE)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8")), salt


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(
    plaintext: Union[str, bytes],
    password: str,
    iterations: int = MIN_ITERATIONS,
) -> EncryptedPayload:
    """Encrypt plaintext under a password with AES-256-GCM.

    A fresh salt and a fresh IV are generated on every call.

    Args:
        plaintext: Data to encrypt (str is encoded as UTF-8).
        password: Master password.
        iterations: PBKDF2 rounds for the derived key.

    Returns:
        EncryptedPayload with base64-encoded ciphertext, tag, IV and salt.
    """
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")
    key, salt = derive_key(password, None, iterations)
    iv = os.urandom(IV_SIZE)
    sealed = AESGCM(key).encrypt(iv, plaintext, None)
    # AESGCM appends the tag to the ciphertext.
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return EncryptedPayload(
        ciphertext=b64encode(ciphertext),
        auth_tag=b64encode(tag),
        iv=b64encode(iv),
        salt=b64encode(salt),
    )


def decrypt(
    payload: EncryptedPayload,
    password: str,
    iterations: int = MIN_ITERATIONS,
) -> str:
    """Decrypt and authenticate an EncryptedPayload.

    Args:
        payload: Output of ``encrypt`` (or rebuilt from a vault record).
        password: Master password used for encryption.
        iterations: PBKDF2 rounds used for encryption.

    Returns:
        Decrypted plaintext as a string.

    Raises:
        WeakParameters: If iterations is below ``MIN_ITERATIONS``.
        DecryptionFailed: On wrong password or any corrupted field.
    """
    try:
        salt = b64decode(payload.salt)
        iv = b64decode(payload.iv)
        tag = b64decode(payload.auth_tag)
        ciphertext = b64decode(payload.ciphertext)
    except (binascii.Error, ValueError) as err:
        raise DecryptionFailed() from err
    if len(iv) != IV_SIZE or len(tag) != TAG_SIZE or len(salt) != SALT_SIZE:
        raise DecryptionFailed()
    key, _ = derive_key(password, salt, iterations)
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, UnicodeDecodeError) as err:
        raise DecryptionFailed() from err


def verify_password(
    payload: EncryptedPayload,
    password: str,
    iterations: int = MIN_ITERATIONS,
) -> bool:
    """Return True when ``password`` decrypts ``payload``.

    The plaintext is discarded.
    """
    try:
        decrypt(payload, password, iterations)
    except DecryptionFailed:
        return False
    return True
