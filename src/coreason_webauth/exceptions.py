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
Custom exceptions for the coreason-webauth package.
"""


class WebAuthError(Exception):
    """Base exception for all coreason-webauth errors."""


class ConfigurationError(WebAuthError, ValueError):
    """Raised when a required configuration field is missing or empty."""


class SdkEnvironmentError(WebAuthError, EnvironmentError):
    """Raised when the interpreter lacks a capability the SDK needs (TLS, JSON)."""


class ApiError(WebAuthError):
    """
    Raised when the Identity Provider returns a malformed or incomplete response.
    The caller is expected to restart the login flow.
    """


class InvalidTokenError(WebAuthError):
    """Raised when the ID token cannot be decoded (bad signature, wrong audience, expired, etc.)."""


class TokenExpiredError(InvalidTokenError):
    """Raised when the ID token has expired."""


class InvalidAudienceError(InvalidTokenError):
    """Raised when the ID token's audience does not match the client ID."""


class SignatureVerificationError(InvalidTokenError):
    """Raised when the ID token's signature cannot be verified."""
