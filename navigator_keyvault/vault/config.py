"""
Vault Configuration - vault location and validated settings.

Reads defaults from environment variables (see ``navigator_keyvault.conf``):
    KEYVAULT_HOME       = <directory holding the vault file>
    KEYVAULT_FILE       = <vault file name>
    KEYVAULT_ITERATIONS = <integer >= 100000>

Security Note:
    The vault directory is created owner-only (0o700).
"""
import os
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..conf import (
    KEYVAULT_FILE,
    KEYVAULT_HOME,
    KEYVAULT_ITERATIONS,
    MIN_ITERATIONS,
)
from ..exceptions import WeakParameters
from .crypto import check_iterations

logger = logging.getLogger("navigator.keyvault")

DIR_MODE = 0o700


def get_vault_dir() -> Path:
    """Return the default vault directory (``KEYVAULT_HOME``)."""
    return KEYVAULT_HOME


def get_vault_path(custom: Optional[Union[str, Path]] = None) -> Path:
    """Return the vault file path.

    Args:
        custom: Explicit path overriding the default location.

    Returns:
        ``custom`` when given, else ``KEYVAULT_HOME/KEYVAULT_FILE``.
    """
    if custom:
        return Path(custom).expanduser()
    return get_vault_dir() / KEYVAULT_FILE


def get_vault_iterations() -> int:
    """Return the PBKDF2 work factor from ``KEYVAULT_ITERATIONS``.

    Raises:
        WeakParameters: If the value is not an integer or is below the floor.
    """
    try:
        iterations = int(KEYVAULT_ITERATIONS)
    except (TypeError, ValueError):
        raise WeakParameters(
            f"KEYVAULT_ITERATIONS must be an integer, got {KEYVAULT_ITERATIONS!r}"
        ) from None
    return check_iterations(iterations)


def ensure_vault_dir(vault_path: Path) -> Path:
    """Create the directory containing ``vault_path`` with owner-only access.

    Returns:
        The containing directory.
    """
    directory = vault_path.parent
    if not directory.exists():
        directory.mkdir(parents=True, mode=DIR_MODE, exist_ok=True)
        # mkdir mode is filtered by the process umask.
        os.chmod(directory, DIR_MODE)
        logger.debug("Created vault directory %s", directory)
    return directory


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    vault_path: Path = Field(default_factory=lambda: get_vault_path())
    iterations: int = Field(default=MIN_ITERATIONS)

    @field_validator("iterations")
    @classmethod
    def validate_iterations(cls, v: int) -> int:
        """Enforce the key-derivation work factor floor."""
        return check_iterations(v)

    @field_validator("vault_path")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        return v.expanduser()

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig from the environment-derived defaults.

        Returns:
            Populated VaultConfig instance.

        Raises:
            WeakParameters: If ``KEYVAULT_ITERATIONS`` is invalid.
        """
        return cls(
            vault_path=get_vault_path(),
            iterations=get_vault_iterations(),
        )
