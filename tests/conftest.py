"""Pytest configuration and shared fixtures."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from pii_anonymizer import Anonymizer, Deanonymizer, TokenCodec, Vault

SECRET = "test-signing-key"

_ENV_VARS = (
    "PII_HMAC_SECRET", "HMAC_SECRET", "PII_ANONYMIZER_DB",
    "SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY",
)


class UntouchableStore:
    """Fails the test on any store access."""
    backend = "untouchable"
    volatile = False

    def put(self, token, original):
        raise AssertionError("store.put must not be called")

    def get(self, token):
        raise AssertionError("store.get must not be called")

    def ensure_ready(self):
        raise AssertionError("store.ensure_ready must not be called")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def codec():
    return TokenCodec(SECRET)


@pytest.fixture
def vault():
    return Vault()


@pytest.fixture
def anonymizer(codec, vault):
    return Anonymizer(codec, vault)


@pytest.fixture
def deanonymizer(vault):
    return Deanonymizer(vault)
