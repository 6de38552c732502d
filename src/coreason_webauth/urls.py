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
Auth0 URL construction.
"""

from typing import Final

URL_MAP: Final[dict[str, str]] = {
    "api": "https://{domain}/api/",
    "authorize": "https://{domain}/authorize/",
    "token": "https://{domain}/oauth/token/",
}


def generate_url(domain: str, key: str, path: str = "/") -> str:
    """
    Builds an Auth0 URL for a named endpoint.

    Args:
        domain: The tenant domain substituted into the template.
        key: One of the `URL_MAP` keys (`api`, `authorize`, `token`).
        path: Path appended to the endpoint. One leading "/" is stripped.

    Returns:
        The full URL.

    Raises:
        KeyError: If `key` is not a known endpoint.
    """
    base = URL_MAP[key].replace("{domain}", domain)
    if path.startswith("/"):
        path = path[1:]
    return base + path
