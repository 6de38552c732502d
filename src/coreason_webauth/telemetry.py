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
SDK identification sent to the Identity Provider.
"""

import base64
import json
import platform

from coreason_webauth import __version__

CLIENT_INFO_HEADER = "Auth0-Client"
SDK_NAME = "coreason-webauth"


def build_client_info() -> dict[str, object]:
    return {
        "name": SDK_NAME,
        "version": __version__,
        "environment": [{"name": "python", "version": platform.python_version()}],
    }


def client_info_header() -> str:
    """
    Returns the value of the `Auth0-Client` header: the client info JSON, base64url encoded.
    """
    payload = json.dumps(build_client_info(), separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")
