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
Session state for the authorization code exchange.

Each credential slot is tri-state:
    - `UNKNOWN`: never restored and never exchanged.
    - `None`: known to be empty (logged out, or an exchange found nothing).
    - any other value: known.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, Final

from coreason_webauth.models import CredentialKind


class _Unknown:
    _instance: "_Unknown | None" = None

    def __new__(cls) -> "_Unknown":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNKNOWN"

    def __bool__(self) -> bool:
        return False


UNKNOWN: Final = _Unknown()


@dataclass(frozen=True)
class SessionState:
    """
    Immutable snapshot of the session credentials.

    Attributes:
        access_token: The opaque access token.
        id_token: The signed ID token.
        user: The user profile record.
        attempted: Whether this session already tried to exchange a code.
    """

    access_token: Any = UNKNOWN
    id_token: Any = UNKNOWN
    user: Any = UNKNOWN
    attempted: bool = False

    def get(self, kind: CredentialKind) -> Any:
        return getattr(self, kind.value)

    def with_value(self, kind: CredentialKind, value: Any) -> "SessionState":
        return replace(self, **{kind.value: value})

    def is_unknown(self, kind: CredentialKind) -> bool:
        return self.get(kind) is UNKNOWN

    def has_unknown(self) -> bool:
        return any(self.is_unknown(kind) for kind in CredentialKind)

    def settled(self) -> "SessionState":
        """Resolves every UNKNOWN slot to known-empty."""
        values = {f.name: None for f in fields(self) if getattr(self, f.name) is UNKNOWN}
        return replace(self, **values) if values else self

    def cleared(self) -> "SessionState":
        return replace(self, access_token=None, id_token=None, user=None)


def begin_exchange(state: SessionState) -> tuple[SessionState, bool]:
    """
    Decides whether a lazy getter should run the code exchange.

    At most one exchange is attempted per state lineage: the returned state is
    flagged as attempted whenever the exchange should run.

    Args:
        state: The current session state.

    Returns:
        The next state and whether the exchange must be performed.
    """
    if state.attempted or not state.has_unknown():
        return state, False
    return replace(state, attempted=True), True
