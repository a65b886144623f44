"""
Shared fixtures.  Environment is set before any app module is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "tests-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from auth.jwt import TokenIssuer
from auth.service import AuthService
from database.user_store import InMemoryUserStore

THIRTY_DAYS = 30 * 24 * 60 * 60

VALID_USER = {
    "name": "Ada L",
    "email": "ada@test.local",
    "password": "Str0ng!Pass",
}


@pytest.fixture
def valid_user():
    return dict(VALID_USER)


@pytest.fixture
def store():
    return InMemoryUserStore()


@pytest.fixture
def tokens():
    return TokenIssuer("tests-secret-key", THIRTY_DAYS)


@pytest.fixture
def service(store, tokens):
    return AuthService(store, tokens)


@pytest.fixture
def client(store, tokens):
    from main import create_app

    with TestClient(create_app(store=store, tokens=tokens)) as test_client:
        yield test_client
