"""KeyVault exceptions.

Every failure of the vault core is raised as a subclass of ``VaultError``.
Decryption failures are deliberately opaque: a wrong password and a
tampered or corrupted payload raise the same ``DecryptionFailed``.
"""


class VaultError(Exception):
    """Base exception for all vault errors."""


class VaultAlreadyExists(VaultError):
    """A vault record already exists at the session path."""


class VaultNotFound(VaultError):
    """No vault record exists at the session path."""


class VaultLoadError(VaultError):
    """The vault record is malformed or misses required fields."""


class WeakParameters(VaultError, ValueError):
    """Key-derivation parameters are below the allowed work factor."""


class DecryptionFailed(VaultError):
    """Wrong password, corrupted or tampered payload."""

    def __init__(self, message: str = "Unable to decrypt vault data"):
        super().__init__(message)


# Same failure: both names are accepted by callers.
WrongPassword = DecryptionFailed


class NotUnlocked(VaultError):
    """Operation requires an unlocked vault session."""


class InvalidName(VaultError, ValueError):
    """Secret name is empty or whitespace-only."""


class InvalidValue(VaultError, ValueError):
    """Secret value is empty or whitespace-only."""


class SecretNotFound(VaultError, KeyError):
    """Requested secret is not present in the store."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message.
        return str(self.args[0]) if self.args else ""


class SecretExists(VaultError):
    """Target secret name is already taken."""


class ConfirmationRequired(VaultError):
    """Bulk deletion was requested without the confirmation sentinel."""
