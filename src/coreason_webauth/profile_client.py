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
ProfileClient component for the Auth0 Management API users endpoint.
"""

import json
from typing import Any
from urllib.parse import quote

import httpx

from coreason_webauth.exceptions import ApiError
from coreason_webauth.telemetry import CLIENT_INFO_HEADER, client_info_header
from coreason_webauth.urls import generate_url
from coreason_webauth.utils.logger import logger

MAX_RESPONSE_BYTES = 1_000_000


class ProfileClient:
    """
    Fetches and updates user profiles, authenticating with the user's ID token.

    Attributes:
        client (httpx.Client): The HTTP client used for requests.
    """

    def __init__(self, client: httpx.Client) -> None:
        self.client = client

    @staticmethod
    def user_url(domain: str, user_id: str) -> str:
        return generate_url(domain, "api", f"v2/users/{quote(user_id, safe='')}")

    def _request(self, method: str, url: str, id_token: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Performs a JSON request and returns the decoded object.

        Raises:
            ApiError: On transport failure, non-2xx status, oversized or non-object body.
        """
        headers = {
            "Authorization": f"Bearer {id_token}",
            "Accept": "application/json",
            CLIENT_INFO_HEADER: client_info_header(),
        }
        try:
            response = self.client.request(method, url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ApiError(f"Request to {url} failed: {e}") from e

        if response.is_error:
            logger.warning(f"{method} {url} returned {response.status_code}")
            raise ApiError(f"{method} {url} returned HTTP {response.status_code}: {response.text[:200]}")

        if len(response.content) > MAX_RESPONSE_BYTES:
            raise ApiError(f"Response from {url} is too large")

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise ApiError(f"Invalid JSON response from {url}") from e

        if not isinstance(data, dict):
            raise ApiError(f"Unexpected response from {url}: expected a JSON object")
        return data

    def get(self, domain: str, id_token: str, user_id: str) -> dict[str, Any]:
        """
        Fetches the user profile.

        Args:
            domain: The tenant domain.
            id_token: The user's ID token, used as bearer credential.
            user_id: The subject identifier.

        Returns:
            dict[str, Any]: The profile record.
        """
        return self._request("GET", self.user_url(domain, user_id), id_token)

    def update(self, domain: str, id_token: str, user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Partially updates the user profile.

        Keys set to None are sent as JSON null, which deletes them server-side.
        Omitted keys are left untouched.

        Returns:
            dict[str, Any]: The profile record as returned by the server.
        """
        return self._request("PATCH", self.user_url(domain, user_id), id_token, payload)
