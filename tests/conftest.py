"""
Pytest configuration and shared fixtures for sealed message registry tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_address = _common.make_address
make_config = _common.make_config
make_client = _common.make_client
make_enrolled_client = _common.make_enrolled_client


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep SEALREG_* variables from the developer's shell out of tests."""
    import os
    for key in list(os.environ):
        if key.startswith("SEALREG_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def admin():
    """Provide the admin address."""
    return make_address("admin")


@pytest.fixture
def alice():
    return make_address("alice")


@pytest.fixture
def bob():
    return make_address("bob")


@pytest.fixture
def config():
    """Provide the default geometry: height 10, 100 addresses, no retries."""
    return make_config()


@pytest.fixture
def client(config):
    """Provide an uninitialized RegistryClient."""
    return make_client(config)


@pytest.fixture
def enrolled_client(config):
    """Provide a client with alice and bob enrolled by admin."""
    return make_enrolled_client(("alice", "bob"), config=config)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
