"""Navigator KeyVault.

Local, password-protected store for small named secrets (API keys, tokens).
"""
from .version import __version__
from .store import SecretStore, SetResult, SecretStats, MergeSummary
from .vault import VaultSession, VaultState, VaultConfig
from .exceptions import (
    VaultError,
    VaultAlreadyExists,
    VaultNotFound,
    VaultLoadError,
    WeakParameters,
    DecryptionFailed,
    WrongPassword,
    NotUnlocked,
    InvalidName,
    InvalidValue,
    SecretNotFound,
    SecretExists,
    ConfirmationRequired,
)

__all__ = [
    "__version__",
    "SecretStore",
    "SetResult",
    "SecretStats",
    "MergeSummary",
    "VaultSession",
    "VaultState",
    "VaultConfig",
    "VaultError",
    "VaultAlreadyExists",
    "VaultNotFound",
    "VaultLoadError",
    "WeakParameters",
    "DecryptionFailed",
    "WrongPassword",
    "NotUnlocked",
    "InvalidName",
    "InvalidValue",
    "SecretNotFound",
    "SecretExists",
    "ConfirmationRequired",
]
