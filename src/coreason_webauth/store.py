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
Credential stores used to persist session credentials between requests.
"""

from collections.abc import MutableMapping
from typing import Any, Protocol, runtime_checkable

from coreason_webauth.exceptions import WebAuthError
from coreason_webauth.request_context import get_request_context


@runtime_checkable
class CredentialStore(Protocol):
    """Protocol for a key/value credential store."""

    def get(self, key: str) -> Any:
        """Returns the stored value, or None when the key is absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Stores the value under the key."""
        ...

    def delete(self, key: str) -> None:
        """Removes the key. Deleting an absent key is not an error."""
        ...


class NullStore:
    """
    Store that persists nothing.
    Selected when persistence is disabled with `store=False`.
    """

    def get(self, key: str) -> Any:
        return None

    def set(self, key: str, value: Any) -> None:
        pass

    def delete(self, key: str) -> None:
        pass


class SessionStore:
    """
    Store backed by the request session.

    Uses the given mapping, or else resolves the session bound to the current
    request context on every call. Keys are namespaced with `prefix` so they
    do not collide with unrelated session keys.
    """

    def __init__(self, session: MutableMapping[str, Any] | None = None, prefix: str = "auth0__") -> None:
        self._session = session
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _resolve(self) -> MutableMapping[str, Any] | None:
        if self._session is not None:
            return self._session
        context = get_request_context()
        return context.session if context else None

    def is_bound(self) -> bool:
        """Whether a session mapping is available for writes."""
        return self._resolve() is not None

    def _require(self) -> MutableMapping[str, Any]:
        session = self._resolve()
        if session is None:
            raise WebAuthError("No request session is bound. Use request_scope() or pass a session mapping.")
        return session

    def get(self, key: str) -> Any:
        session = self._resolve()
        if session is None:
            return None
        return session.get(self._key(key))

    def set(self, key: str, value: Any) -> None:
        self._require()[self._key(key)] = value

    def delete(self, key: str) -> None:
        self._require().pop(self._key(key), None)
