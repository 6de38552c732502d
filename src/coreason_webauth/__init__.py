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
Auth0 web login for server-side applications: authorization code exchange and session credentials.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import PersistencePolicy, WebAuthConfig
from .exceptions import ApiError, ConfigurationError, InvalidTokenError, SdkEnvironmentError, WebAuthError
from .models import CredentialKind
from .profile_client import ProfileClient
from .request_context import RequestContext, request_scope
from .session import AuthSession
from .store import CredentialStore, NullStore, SessionStore
from .token_codec import IdTokenCodec

__all__ = [
    "ApiError",
    "AuthSession",
    "ConfigurationError",
    "CredentialKind",
    "CredentialStore",
    "IdTokenCodec",
    "InvalidTokenError",
    "NullStore",
    "PersistencePolicy",
    "ProfileClient",
    "RequestContext",
    "SdkEnvironmentError",
    "SessionStore",
    "WebAuthConfig",
    "WebAuthError",
    "request_scope",
]
