import pytest

from navigator_keyvault import SecretStore, VaultSession

PASSWORD = "correct horse battery staple"


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def vault_path(tmp_path):
    """Vault file inside a directory that does not exist yet."""
    return tmp_path / "keyp" / "vault.json"


@pytest.fixture
def session(vault_path):
    """A locked session on a path with no vault file."""
    return VaultSession(vault_path)


@pytest.fixture
def unlocked_session(session, password):
    """A freshly initialized (and therefore unlocked) session."""
    session.initialize(password)
    yield session
    session.lock()


@pytest.fixture
def store():
    return SecretStore()
