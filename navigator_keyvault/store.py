"""
SecretStore - in-memory mapping of secret names to secret values.

Pure data-structure logic: nothing here touches the filesystem or the
cipher. A store only exists while a ``VaultSession`` is unlocked and is
always serialized and encrypted as a whole.
"""
from enum import Enum
from typing import Any, NamedTuple, Optional
from collections.abc import Iterator, Mapping, MutableMapping

import orjson

from .conf import CLEAR_ALL_CONFIRMATION
from .exceptions import (
    ConfirmationRequired,
    InvalidName,
    InvalidValue,
    SecretExists,
    SecretNotFound,
    VaultLoadError,
)


class SetResult(str, Enum):
    """Outcome of ``SecretStore.set``."""

    CREATED = "created"
    UPDATED = "updated"


class SecretStats(NamedTuple):
    total: int
    average_value_length: int
    longest_name: Optional[str]


class MergeSummary(NamedTuple):
    created: list[str]
    updated: list[str]


def _validate_name(name: str) -> None:
    if not isinstance(name, str) or not name.strip():
        raise InvalidName("Secret name cannot be empty")


def _validate_value(value: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidValue("Secret value cannot be empty")


class SecretStore(MutableMapping[str, str]):
    """Dict-like container of secrets.

    Item assignment goes through the same validation as ``set``. Listing
    and searching always return names in ascending lexicographic order.
    """

    def __init__(self, data: Optional[Mapping[str, str]] = None) -> None:
        self._data: dict[str, str] = {}
        if data:
            for name, value in data.items():
                self.set(name, value)

    def __repr__(self) -> str:
        # values are never shown.
        return f'<SecretStore [count:{len(self._data)}] names={self.names()!r}>'

    # --- Secret operations ---

    def set(self, name: str, value: str) -> SetResult:
        """Create or update a secret.

        Raises:
            InvalidName: If name is empty or whitespace-only.
            InvalidValue: If value is empty or whitespace-only.
        """
        _validate_name(name)
        _validate_value(value)
        result = SetResult.UPDATED if name in self._data else SetResult.CREATED
        self._data[name] = value
        return result

    def has(self, name: str) -> bool:
        return name in self._data

    def delete(self, name: str) -> None:
        """Remove a secret.

        Raises:
            SecretNotFound: If no secret with that name exists.
        """
        try:
            del self._data[name]
        except KeyError:
            raise SecretNotFound(f'Secret "{name}" not found') from None

    def names(self) -> list[str]:
        """Secret names, sorted ascending."""
        return sorted(self._data)

    def search(self, pattern: str) -> list[str]:
        """Names containing ``pattern``, case-insensitive, sorted ascending."""
        needle = pattern.lower()
        return sorted(name for name in self._data if needle in name.lower())

    def count(self) -> int:
        return len(self._data)

    def clear_all(self, confirmation: str = "") -> int:
        """Delete every secret.

        Args:
            confirmation: Must equal ``CLEAR_ALL_CONFIRMATION``.

        Returns:
            Number of secrets removed.

        Raises:
            ConfirmationRequired: If the confirmation sentinel is missing.
        """
        if confirmation != CLEAR_ALL_CONFIRMATION:
            raise ConfirmationRequired(
                f'Confirmation not provided. Pass "{CLEAR_ALL_CONFIRMATION}" '
                'to delete all secrets.'
            )
        removed = len(self._data)
        self._data.clear()
        return removed

    def rename(self, old: str, new: str) -> None:
        """Move a secret value from ``old`` to ``new``.

        Raises:
            SecretNotFound: If ``old`` does not exist.
            InvalidName: If ``new`` is empty or equal to ``old``.
            SecretExists: If ``new`` is already taken.
        """
        if old not in self._data:
            raise SecretNotFound(f'Secret "{old}" not found')
        _validate_name(new)
        if new == old:
            raise InvalidName("New name must be different from old name")
        if new in self._data:
            raise SecretExists(f'Secret "{new}" already exists')
        self._data[new] = self._data.pop(old)

    def stats(self) -> SecretStats:
        total = len(self._data)
        if not total:
            return SecretStats(0, 0, None)
        names = self.names()
        average = round(sum(len(v) for v in self._data.values()) / total)
        # last of the longest, in sorted order
        longest = max(reversed(names), key=len)
        return SecretStats(total, average, longest)

    def merge(
        self,
        secrets: Mapping[str, Any],
        replace: bool = False
    ) -> MergeSummary:
        """Import a batch of secrets.

        All entries are validated before the store is touched, so a bad
        entry leaves the store unchanged.

        Args:
            secrets: Mapping of name to value.
            replace: Drop every existing secret before importing.

        Returns:
            MergeSummary with created and updated names, sorted.
        """
        for name, value in secrets.items():
            _validate_name(name)
            _validate_value(value)
        if replace:
            self._data.clear()
        created, updated = [], []
        for name, value in secrets.items():
            if self.set(name, value) is SetResult.CREATED:
                created.append(name)
            else:
                updated.append(name)
        return MergeSummary(sorted(created), sorted(updated))

    def export(self) -> dict[str, str]:
        """Plain copy of all secrets, ordered by name."""
        return {name: self._data[name] for name in self.names()}

    # --- Serialization ---

    def to_json(self) -> bytes:
        """Serialize the whole store as a JSON object."""
        return orjson.dumps(self._data, option=orjson.OPT_SORT_KEYS)

    @classmethod
    def from_json(cls, data: bytes | str) -> "SecretStore":
        """Build a store from decrypted JSON.

        Raises:
            VaultLoadError: If data is not a JSON object of strings.
        """
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise VaultLoadError(f"Vault data is not valid JSON: {err}") from err
        if not isinstance(parsed, dict):
            raise VaultLoadError("Vault data must be a JSON object")
        for name, value in parsed.items():
            if not isinstance(value, str):
                raise VaultLoadError(
                    f'Vault data entry "{name}" must be a string'
                )
        try:
            return cls(parsed)
        except (InvalidName, InvalidValue) as err:
            raise VaultLoadError(f"Vault data holds an invalid entry: {err}") from err

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __getitem__(self, name: str) -> str:
        try:
            return self._data[name]
        except KeyError:
            raise SecretNotFound(f'Secret "{name}" not found') from None

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        self.delete(name)

    def clear(self, confirmation: str = "") -> None:
        # MutableMapping.clear would bypass the confirmation gate.
        self.clear_all(confirmation)
