"""
Shared pytest fixtures for the Aliaser test suite.

Every vault lives under the test's tmp_path and uses cheap Argon2
parameters; the production defaults cost about a second per derivation.
"""

import os

import pytest

from aliaser.core.config import (
    AliaserConfig,
    HasherConfig,
    KdfConfig,
    LoggingConfig,
    PathConfig,
)
from aliaser.core.models.identity import Identity
from aliaser.core.vault.engine import Vault

MASTER_PASSWORD = "Sup3rSecret!"
FAST_KDF = KdfConfig(time_cost=1, memory_cost=1024, parallelism=1)
FAST_HASHER = HasherConfig(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def app_config(tmp_path):
    return AliaserConfig(
        paths=PathConfig.in_directory(tmp_path / "home"),
        kdf=FAST_KDF,
        hasher=FAST_HASHER,
        logging=LoggingConfig(enable_console=False),
    )


@pytest.fixture
def vault(app_config):
    return Vault(app_config)


@pytest.fixture
def session(vault):
    """An open session on a freshly initialized vault."""
    s = vault.init(MASTER_PASSWORD)
    yield s
    s.close()


@pytest.fixture
def key():
    return os.urandom(32)


@pytest.fixture
def github():
    return Identity(service="GitHub", username="alice", password="p@ss")


def _make_identity(service, **fields):
    fields.setdefault("username", f"user-{service.lower()}")
    fields.setdefault("password", "hunter2-" + service)
    return Identity(service=service, **fields)


@pytest.fixture
def make_identity():
    return _make_identity
