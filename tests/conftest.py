"""Pytest configuration and fixtures."""

import pytest

from pkce_oauth.client import OAuthClientOptions, create_oauth_client
from pkce_oauth.constants import (
    ENV_AUTHORIZATION_URI,
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
    ENV_REDIRECT_URI,
    ENV_SCOPES,
    ENV_TOKEN_URI,
)
from pkce_oauth.storage import MemoryStorage, VerifierStore

AUTHORIZE_URL = "https://auth.example.com/oauth/authorize"
TOKEN_URL = "https://auth.example.com/oauth/token"
REDIRECT_URI = "http://localhost:8080/callback"
CLIENT_ID = "test-client-id"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep client configuration from the developer's environment out of tests."""
    for name in (
        ENV_CLIENT_ID,
        ENV_CLIENT_SECRET,
        ENV_AUTHORIZATION_URI,
        ENV_TOKEN_URI,
        ENV_REDIRECT_URI,
        ENV_SCOPES,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def options():
    return OAuthClientOptions(
        client_id=CLIENT_ID,
        authorization_uri=AUTHORIZE_URL,
        access_token_uri=TOKEN_URL,
        redirect_uri=REDIRECT_URI,
        scopes=("openid", "profile"),
    )


@pytest.fixture
def oauth_client(options):
    return create_oauth_client(options)


@pytest.fixture
def store():
    return VerifierStore(MemoryStorage())
