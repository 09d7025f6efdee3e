"""
KeyVault defaults, resolved once from the environment at import time.

    KEYVAULT_HOME       = <directory holding the vault file> (default ~/.keyp)
    KEYVAULT_FILE       = <vault file name> (default vault.json)
    KEYVAULT_ITERATIONS = <PBKDF2 rounds, never below MIN_ITERATIONS>
"""
import os
from pathlib import Path

# Current on-disk format version written by ``initialize``.
VAULT_FORMAT_VERSION = "1.0.0"

ALGORITHM = "aes-256-gcm"
KDF = "pbkdf2"

MIN_ITERATIONS = 100_000

# Sentinel required by ``SecretStore.clear_all``.
CLEAR_ALL_CONFIRMATION = "CONFIRM_DELETE_ALL"

KEYVAULT_HOME = Path(
    os.environ.get("KEYVAULT_HOME", Path.home() / ".keyp")
).expanduser()
KEYVAULT_FILE = os.environ.get("KEYVAULT_FILE", "vault.json")
# Raw value; parsed and checked by VaultConfig.from_env.
KEYVAULT_ITERATIONS = os.environ.get("KEYVAULT_ITERATIONS", str(MIN_ITERATIONS))
