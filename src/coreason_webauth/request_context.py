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
Request-scoped context: the incoming request's parameters and session.

Web framework integrations bind the context once per request; the session
reads the authorization code from it and `SessionStore` persists into its
session mapping.
"""

from collections.abc import Generator, Mapping, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RequestContext:
    """
    The parts of the current request the SDK needs.

    Attributes:
        params: Query/form parameters of the request (the callback carries `code`).
        session: The framework's mutable session mapping, if any.
    """

    params: Mapping[str, Any] = field(default_factory=dict)
    session: MutableMapping[str, Any] | None = None


# ContextVar to store the current request context.
# Default is None.
_current_request: ContextVar[RequestContext | None] = ContextVar("current_request", default=None)


def get_request_context() -> RequestContext | None:
    """
    Retrieve the current request context.

    Returns:
        RequestContext | None: The current request context, or None if not set.
    """
    return _current_request.get()


def set_request_context(context: RequestContext) -> None:
    """
    Set the request context for the current execution context.

    Args:
        context: The RequestContext to set.
    """
    _current_request.set(context)


def clear_request_context() -> None:
    """
    Clear the current request context (reset to None).
    """
    _current_request.set(None)


@contextmanager
def request_scope(
    params: Mapping[str, Any] | None = None,
    session: MutableMapping[str, Any] | None = None,
) -> Generator[RequestContext, None, None]:
    """
    Binds a request context for the duration of the block and restores the previous one afterwards.

    Args:
        params: The request parameters.
        session: The request's session mapping.

    Yields:
        RequestContext: The bound context.
    """
    context = RequestContext(params=dict(params or {}), session=session)
    token = _current_request.set(context)
    try:
        yield context
    finally:
        _current_request.reset(token)


def get_authorization_code() -> str | None:
    """
    Returns the authorization code of the current request, or None when there is none.
    """
    context = _current_request.get()
    if context is None:
        return None
    code = context.params.get("code")
    if not code:
        return None
    return str(code)
