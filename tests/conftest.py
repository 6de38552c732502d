# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_webauth


from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock

import pytest

from coreason_webauth.profile_client import ProfileClient
from coreason_webauth.request_context import clear_request_context
from coreason_webauth.session import AuthSession
from coreason_webauth.store import SessionStore
from coreason_webauth.token_codec import IdTokenCodec

MOCK_DOMAIN = "test.auth0.com"
MOCK_CLIENT_ID = "test-client-id"
MOCK_CLIENT_SECRET = "test-client-secret-with-enough-entropy"
MOCK_REDIRECT_URI = "https://app.example.com/callback"
MOCK_PROFILE = {"user_id": "u1", "user_metadata": {"a": 1}, "app_metadata": {"plan": "pro"}}


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None, None, None]:
    """Ensures no request context leaks between tests."""
    clear_request_context()
    yield
    clear_request_context()


@pytest.fixture
def config_values() -> dict[str, Any]:
    return {
        "domain": MOCK_DOMAIN,
        "client_id": MOCK_CLIENT_ID,
        "client_secret": MOCK_CLIENT_SECRET,
        "redirect_uri": MOCK_REDIRECT_URI,
    }


@pytest.fixture
def session_data() -> dict[str, Any]:
    """The framework session mapping backing the store."""
    return {}


@pytest.fixture
def store(session_data: dict[str, Any]) -> SessionStore:
    return SessionStore(session_data)


@pytest.fixture
def oauth_client() -> MagicMock:
    client = MagicMock()
    client.fetch_token.return_value = {"access_token": "AT1", "id_token": "IDT1", "token_type": "Bearer"}
    return client


@pytest.fixture
def token_codec() -> MagicMock:
    codec = MagicMock(spec=IdTokenCodec)
    codec.decode.return_value = {"sub": "u1", "aud": MOCK_CLIENT_ID}
    return codec


@pytest.fixture
def profile_client() -> MagicMock:
    client = MagicMock(spec=ProfileClient)
    client.get.return_value = dict(MOCK_PROFILE)
    return client


@pytest.fixture
def make_session(
    config_values: dict[str, Any],
    store: SessionStore,
    oauth_client: MagicMock,
    token_codec: MagicMock,
    profile_client: MagicMock,
) -> Callable[..., AuthSession]:
    """Factory building an AuthSession over mocked collaborators. Keyword arguments override config values."""

    def _make(**overrides: Any) -> AuthSession:
        return AuthSession(
            {**config_values, **overrides},
            store=store,
            oauth_client=oauth_client,
            token_codec=token_codec,
            profile_client=profile_client,
        )

    return _make
