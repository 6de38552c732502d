# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_webauth


"""
End-to-end code exchange over the real OAuth2 client, with the IdP mocked at the transport level.
"""

import base64
import json
import time
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from authlib.integrations.httpx_client import OAuth2Client
from authlib.jose import jwt

from coreason_webauth.exceptions import ApiError
from coreason_webauth.profile_client import ProfileClient
from coreason_webauth.request_context import request_scope
from coreason_webauth.session import AuthSession
from coreason_webauth.store import SessionStore

DOMAIN = "tenant.auth0.com"
CLIENT_ID = "test-client-id"
CLIENT_SECRET = "test-client-secret-with-enough-entropy"
REDIRECT_URI = "https://app.example.com/callback"
PROFILE = {"user_id": "u1", "user_metadata": {"a": 1}}


def id_token() -> str:
    claims = {"sub": "u1", "aud": CLIENT_ID, "exp": int(time.time()) + 600}
    return jwt.encode({"alg": "HS256"}, claims, CLIENT_SECRET).decode("utf-8")


class FakeIdP:
    """Records requests and answers the token and users endpoints."""

    def __init__(self, token_response: tuple[int, dict[str, Any]] | httpx.Response) -> None:
        self.token_response = token_response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/oauth/token/":
            if isinstance(self.token_response, httpx.Response):
                return self.token_response
            status, body = self.token_response
            return httpx.Response(status, json=body)
        if request.url.path == "/api/v2/users/u1":
            return httpx.Response(200, json=PROFILE)
        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def build_session(idp: FakeIdP, session_data: dict[str, Any]) -> tuple[AuthSession, OAuth2Client]:
    transport = httpx.MockTransport(idp)
    oauth_client = OAuth2Client(client_id=CLIENT_ID, client_secret=CLIENT_SECRET, transport=transport)
    profile_client = ProfileClient(httpx.Client(transport=transport))
    session = AuthSession(
        {"domain": DOMAIN, "client_id": CLIENT_ID, "client_secret": CLIENT_SECRET, "redirect_uri": REDIRECT_URI},
        store=SessionStore(session_data),
        oauth_client=oauth_client,
        profile_client=profile_client,
    )
    return session, oauth_client


def test_full_exchange() -> None:
    token = id_token()
    idp = FakeIdP((200, {"access_token": "AT1", "id_token": token, "token_type": "Bearer"}))
    session_data: dict[str, Any] = {}
    session, oauth_client = build_session(idp, session_data)

    with request_scope(params={"code": "CODE1"}):
        assert session.get_user() == PROFILE

    assert session.get_access_token() == "AT1"
    assert session.get_id_token() == token
    assert idp.paths() == ["/oauth/token/", "/api/v2/users/u1"]

    token_request = idp.requests[0]
    form = parse_qs(token_request.content.decode("utf-8"))
    assert form["grant_type"] == ["authorization_code"]
    assert form["code"] == ["CODE1"]
    assert form["redirect_uri"] == [REDIRECT_URI]
    assert "Auth0-Client" in token_request.headers
    basic = base64.b64encode(f"{CLIENT_ID}:{CLIENT_SECRET}".encode()).decode()
    assert token_request.headers["Authorization"] == f"Basic {basic}"

    profile_request = idp.requests[1]
    assert profile_request.headers["Authorization"] == f"Bearer {token}"

    assert oauth_client.token["access_token"] == "AT1"
    assert session_data == {"auth0__user": PROFILE}


def test_error_response_is_api_error() -> None:
    idp = FakeIdP((403, {"error": "invalid_grant", "error_description": "Invalid authorization code"}))
    session_data: dict[str, Any] = {}
    session, _ = build_session(idp, session_data)

    with request_scope(params={"code": "STALE"}):
        with pytest.raises(ApiError):
            session.get_user()

    assert idp.paths() == ["/oauth/token/"]
    assert session_data == {}


def test_missing_id_token_over_http() -> None:
    idp = FakeIdP((200, {"access_token": "AT1", "token_type": "Bearer"}))
    session, oauth_client = build_session(idp, {})

    with request_scope(params={"code": "CODE1"}):
        with pytest.raises(ApiError) as exc:
            session.get_access_token()

    assert "openid scope" in str(exc.value)
    assert oauth_client.token is None
    assert json.dumps(idp.paths()) == '["/oauth/token/"]'


def test_unreachable_token_endpoint_is_api_error() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    oauth_client = OAuth2Client(client_id=CLIENT_ID, client_secret=CLIENT_SECRET, transport=httpx.MockTransport(refuse))
    profile_client = ProfileClient(httpx.Client(transport=httpx.MockTransport(refuse)))
    session_data: dict[str, Any] = {}
    session = AuthSession(
        {"domain": DOMAIN, "client_id": CLIENT_ID, "client_secret": CLIENT_SECRET, "redirect_uri": REDIRECT_URI},
        store=SessionStore(session_data),
        oauth_client=oauth_client,
        profile_client=profile_client,
    )

    with request_scope(params={"code": "CODE1"}):
        with pytest.raises(ApiError) as exc:
            session.get_user()

    assert "Connection refused" in str(exc.value)
    assert session_data == {}
    # Not retried
    assert session.get_access_token() is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>Bad gateway</html>", headers={"Content-Type": "text/html"}),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
    ids=["html", "json-array"],
)
def test_malformed_token_response_is_api_error(response: httpx.Response) -> None:
    idp = FakeIdP(response)
    session_data: dict[str, Any] = {}
    session, oauth_client = build_session(idp, session_data)

    with request_scope(params={"code": "CODE1"}):
        with pytest.raises(ApiError) as exc:
            session.get_user()

    assert "Invalid response from token endpoint" in str(exc.value)
    assert idp.paths() == ["/oauth/token/"]
    assert oauth_client.token is None
    assert session_data == {}
    assert session.get_user() is None
