"""
Vault Record - versioned on-disk schema binding crypto parameters to ciphertext.

File format (JSON, one record per vault)::

    {
      "version": "1.0.0",
      "crypto": {"algorithm": "aes-256-gcm", "kdf": "pbkdf2",
                 "iterations": 100000, "salt": "<b64 32B>"},
      "data": "<b64 ciphertext>",
      "authTag": "<b64 tag>",
      "iv": "<b64 12B>",
      "createdAt": "<ISO-8601>",
      "updatedAt": "<ISO-8601>"
    }

Unknown fields are kept on load and written back on save, so a record
produced by a newer format version does not lose its extra metadata.
"""
import os
import logging
from pathlib import Path
from typing import Literal
from datetime import datetime, timezone

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..conf import ALGORITHM, KDF, VAULT_FORMAT_VERSION
from ..exceptions import VaultLoadError, VaultNotFound
from .crypto import EncryptedPayload

logger = logging.getLogger("navigator.keyvault")

FILE_MODE = 0o600


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CryptoParameters(BaseModel):
    """Cipher and key-derivation parameters of a vault."""

    algorithm: Literal["aes-256-gcm"] = ALGORITHM
    kdf: Literal["pbkdf2"] = KDF
    iterations: int
    salt: str

    model_config = ConfigDict(extra="allow")


class VaultRecord(BaseModel):
    """Persisted vault container."""

    version: str = VAULT_FORMAT_VERSION
    crypto: CryptoParameters
    data: str
    auth_tag: str = Field(alias="authTag")
    iv: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @classmethod
    def create(
        cls,
        payload: EncryptedPayload,
        iterations: int,
        version: str = VAULT_FORMAT_VERSION,
    ) -> "VaultRecord":
        """Build a brand-new record; created and updated are both now."""
        now = utcnow()
        return cls(
            version=version,
            crypto=CryptoParameters(iterations=iterations, salt=payload.salt),
            data=payload.ciphertext,
            auth_tag=payload.auth_tag,
            iv=payload.iv,
            created_at=now,
            updated_at=now,
        )

    @property
    def payload(self) -> EncryptedPayload:
        """EncryptedPayload rebuilt from the record fields."""
        return EncryptedPayload(
            ciphertext=self.data,
            auth_tag=self.auth_tag,
            iv=self.iv,
            salt=self.crypto.salt,
        )

    def replace_payload(
        self,
        payload: EncryptedPayload,
        iterations: int,
    ) -> "VaultRecord":
        """Return a new record carrying ``payload``.

        ``version``, ``created_at`` and any unknown fields are copied forward;
        ciphertext, tag, IV, salt, iterations and ``updated_at`` change.
        """
        crypto = self.crypto.model_copy(
            update={"iterations": iterations, "salt": payload.salt}
        )
        return self.model_copy(
            update={
                "crypto": crypto,
                "data": payload.ciphertext,
                "auth_tag": payload.auth_tag,
                "iv": payload.iv,
                "updated_at": utcnow(),
            }
        )

    def dumps(self) -> bytes:
        return orjson.dumps(
            self.model_dump(mode="json", by_alias=True),
            option=orjson.OPT_INDENT_2,
        )

    @classmethod
    def loads(cls, raw: bytes | str) -> "VaultRecord":
        """Parse a serialized record.

        Raises:
            VaultLoadError: If the content is not JSON or misses fields.
        """
        try:
            return cls.model_validate(orjson.loads(raw))
        except orjson.JSONDecodeError as err:
            raise VaultLoadError(f"Vault file is not valid JSON: {err}") from err
        except ValidationError as err:
            raise VaultLoadError(
                f"Vault file is malformed ({err.error_count()} error(s))"
            ) from err


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------

def read_record(path: Path) -> VaultRecord:
    """Read the whole vault file at ``path``.

    Raises:
        VaultNotFound: If no file exists at ``path``.
        VaultLoadError: If the file content is not a valid record.
    """
    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        raise VaultNotFound(f"Vault does not exist at {path}") from None
    return VaultRecord.loads(raw)


def write_record(path: Path, record: VaultRecord) -> None:
    """Replace the vault file at ``path`` with ``record``.

    The record is written to a sibling temp file (mode 0o600) which is then
    renamed over ``path``.
    """
    tmp_path = path.with_name(path.name + ".tmp")
    content = record.dumps()
    try:
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        try:
            # a stale temp file keeps its old mode on open
            os.fchmod(fd, FILE_MODE)
            f = os.fdopen(fd, "wb")
        except Exception:
            os.close(fd)
            raise
        with f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        # Clean up temp file on failure
        if tmp_path.exists():
            tmp_path.unlink()
        raise
    logger.debug("Vault record written to %s (%d bytes)", path, len(content))
