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
Runtime capability checks.
"""

import importlib.util

from coreason_webauth.exceptions import SdkEnvironmentError

# Module name -> capability it provides
REQUIRED_MODULES: dict[str, str] = {
    "ssl": "TLS support (the ssl module)",
    "json": "JSON support (the json module)",
}


def check_requirements() -> None:
    """
    Verifies the interpreter can make HTTPS calls and decode JSON.

    Raises:
        SdkEnvironmentError: If a required module is unavailable.
    """
    for module, capability in REQUIRED_MODULES.items():
        if importlib.util.find_spec(module) is None:
            raise SdkEnvironmentError(f"{capability} is needed to use coreason-webauth. Not found.")
