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
IdTokenCodec component for decoding the ID token returned by the code exchange.
"""

import base64
import binascii
import hashlib
import hmac
from typing import Any, cast

from authlib.jose import JsonWebToken
from authlib.jose.errors import (
    BadSignatureError,
    ExpiredTokenError,
    InvalidClaimError,
    JoseError,
    MissingClaimError,
)
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import SecretStr

from coreason_webauth.exceptions import (
    InvalidAudienceError,
    InvalidTokenError,
    SignatureVerificationError,
    TokenExpiredError,
    WebAuthError,
)
from coreason_webauth.utils.logger import logger

tracer = trace.get_tracer(__name__)


class IdTokenCodec:
    """
    Decodes HS256 ID tokens signed with the application's client secret.

    Attributes:
        client_id (str): The expected audience (aud) claim.
        leeway (int): Acceptable clock skew in seconds.
    """

    algorithms = ["HS256"]

    def __init__(
        self,
        client_id: str,
        client_secret: SecretStr | str,
        secret_base64_encoded: bool = False,
        leeway: int = 0,
    ) -> None:
        """
        Initialize the IdTokenCodec.

        Args:
            client_id: The application's Client ID, expected as audience.
            client_secret: The application's Client Secret, used as the HMAC key.
            secret_base64_encoded: Whether the secret is base64url encoded (legacy Auth0 applications).
            leeway: Acceptable clock skew in seconds. Defaults to 0.
        """
        self.client_id = client_id
        if isinstance(client_secret, str):
            client_secret = SecretStr(client_secret)
        self._secret = client_secret
        self.secret_base64_encoded = secret_base64_encoded
        self.leeway = leeway
        self.jwt = JsonWebToken(self.algorithms)

    def _signing_key(self) -> bytes:
        raw = self._secret.get_secret_value()
        if not self.secret_base64_encoded:
            return raw.encode("utf-8")
        try:
            return base64.urlsafe_b64decode(raw + "=" * (-len(raw) % 4))
        except (binascii.Error, ValueError) as e:
            raise WebAuthError("client_secret is not valid base64url") from e

    def _anonymize(self, value: str) -> str:
        return hmac.new(self._signing_key(), value.encode("utf-8"), hashlib.sha256).hexdigest()

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verifies the ID token signature and claims.

        Emits an OpenTelemetry span `decode_id_token`.

        Args:
            token: The raw ID token.

        Returns:
            dict[str, Any]: The claims dictionary. Always contains `sub`.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidAudienceError: If the audience is not the client ID.
            SignatureVerificationError: If the signature is invalid.
            InvalidTokenError: If claims are missing or invalid, or for general JOSE errors.
        """
        with tracer.start_as_current_span("decode_id_token") as span:
            claims_options = {
                "exp": {"essential": True},
                "aud": {"essential": True, "value": self.client_id},
                "sub": {"essential": True},
            }
            try:
                jwt_any = cast("Any", self.jwt)
                claims = jwt_any.decode(token.strip(), self._signing_key(), claims_options=claims_options)
                claims.validate(leeway=self.leeway)
            except ExpiredTokenError as e:
                logger.warning("ID token rejected: expired")
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise TokenExpiredError(f"ID token has expired: {e}") from e
            except InvalidClaimError as e:
                logger.warning("ID token rejected: invalid claim", exc_info=True)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                if "aud" in str(e):
                    raise InvalidAudienceError(f"Invalid audience: {e}") from e
                raise InvalidTokenError(f"Invalid claim: {e}") from e
            except MissingClaimError as e:
                logger.warning("ID token rejected: missing claim")
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise InvalidTokenError(f"Missing claim: {e}") from e
            except BadSignatureError as e:
                logger.error("ID token rejected: bad signature")
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise SignatureVerificationError(f"Invalid signature: {e}") from e
            except JoseError as e:
                logger.error("ID token rejected: JOSE error")
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise InvalidTokenError(f"ID token decoding failed: {e}") from e
            except ValueError as e:
                # Authlib raises ValueError for tokens that are not compact JWS at all
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise InvalidTokenError(f"Malformed ID token: {e}") from e

            payload = dict(claims)
            span.set_attribute("enduser.id", self._anonymize(str(payload["sub"])))
            span.set_status(Status(StatusCode.OK))
            return payload
