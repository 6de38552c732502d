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
AuthSession component: authorization code exchange and credential access.
"""

import inspect
import json
import warnings
from collections.abc import Callable, Mapping
from typing import Any, Literal

import httpx
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.httpx_client import OAuth2Client
from opentelemetry import trace
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from pydantic import SecretStr, ValidationError

from coreason_webauth.config import PersistencePolicy, WebAuthConfig, normalize_domain
from coreason_webauth.exceptions import ApiError, ConfigurationError, WebAuthError
from coreason_webauth.models import CredentialKind, TokenResponse
from coreason_webauth.profile_client import ProfileClient
from coreason_webauth.request_context import get_authorization_code
from coreason_webauth.state import UNKNOWN, SessionState, begin_exchange
from coreason_webauth.store import CredentialStore, NullStore, SessionStore
from coreason_webauth.telemetry import CLIENT_INFO_HEADER, client_info_header
from coreason_webauth.token_codec import IdTokenCodec
from coreason_webauth.urls import generate_url
from coreason_webauth.utils.environment import check_requirements
from coreason_webauth.utils.logger import logger

tracer = trace.get_tracer(__name__)

Debugger = Callable[[str], Any]

TOKEN_REQUEST_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/x-www-form-urlencoded;charset=UTF-8",
}


class AuthSession:
    """
    Request-scoped Auth0 session (The Core).

    Restores credentials from the store on construction and, the first time a
    credential getter finds an unknown value, exchanges the authorization code
    of the current request for tokens and the user profile.
    """

    def __init__(
        self,
        config: WebAuthConfig | Mapping[str, Any],
        *,
        store: CredentialStore | Literal[False] | None = None,
        oauth_client: OAuth2Client | None = None,
        token_codec: IdTokenCodec | None = None,
        profile_client: ProfileClient | None = None,
        debugger: Debugger | None = None,
    ) -> None:
        """
        Initialize the AuthSession.

        Args:
            config: A `WebAuthConfig`, or a mapping of its fields. A mapping may also carry
                `store` and `debugger`, used when the keyword arguments are not given.
            store: The credential store. `False` disables persistence; None uses the request session.
            oauth_client: External OAuth2 client (optional). Created from the configuration if not provided.
            token_codec: ID token decoder (optional). Created from the configuration if not provided.
            profile_client: User profile client (optional). Created over a new `httpx.Client` if not provided.
            debugger: Callback receiving debug messages while debug mode is on.

        Raises:
            SdkEnvironmentError: If the interpreter lacks TLS or JSON support.
            ConfigurationError: If domain, client_id, client_secret or redirect_uri is missing or empty.
        """
        check_requirements()

        if not isinstance(config, WebAuthConfig):
            values = dict(config)
            mapped_store = values.pop("store", None)
            mapped_debugger = values.pop("debugger", None)
            if store is None:
                store = mapped_store
            if debugger is None:
                debugger = mapped_debugger
            config = WebAuthConfig.build(**values)

        self.config = config
        self._domain = config.domain
        self._client_id = config.client_id
        self._client_secret = config.client_secret
        self._redirect_uri = config.redirect_uri
        self._debug_mode = config.debug
        self._debugger = debugger
        self._policy = config.persistence_policy
        self._token_codec = token_codec
        self._internal_clients: list[httpx.Client] = []

        if store is False:
            self._store: CredentialStore = NullStore()
        elif store is None:
            self._store = SessionStore()
        else:
            self._store = store

        # Created on first use when not injected
        self._oauth_client: OAuth2Client | None = oauth_client
        self._profile_client: ProfileClient | None = profile_client

        self._state = SessionState(
            access_token=self._restore(CredentialKind.ACCESS_TOKEN),
            id_token=self._restore(CredentialKind.ID_TOKEN),
            user=self._restore(CredentialKind.USER),
        )

        if self._state.access_token is not UNKNOWN:
            self._install_bearer(self._state.access_token)

    def __enter__(self) -> "AuthSession":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Closes the HTTP clients created by this session."""
        for client in self._internal_clients:
            client.close()
        self._internal_clients.clear()

    def _restore(self, kind: CredentialKind) -> Any:
        value = self._store.get(kind.value)
        return UNKNOWN if value is None else value

    @property
    def oauth_client(self) -> OAuth2Client:
        """The OAuth2 client, carrying the access token as bearer credential once it is known."""
        if self._oauth_client is None:
            client = OAuth2Client(
                client_id=self._client_id,
                client_secret=self._client_secret.get_secret_value(),
                timeout=self.config.http_timeout,
            )
            HTTPXClientInstrumentor().instrument_client(client)
            self._internal_clients.append(client)
            self._oauth_client = client
            access_token = self._state.access_token
            if access_token is not UNKNOWN:
                self._install_bearer(access_token)
        return self._oauth_client

    def _profile(self) -> ProfileClient:
        if self._profile_client is None:
            http_client = httpx.Client(timeout=self.config.http_timeout)
            HTTPXClientInstrumentor().instrument_client(http_client)
            self._internal_clients.append(http_client)
            self._profile_client = ProfileClient(http_client)
        return self._profile_client

    def _install_bearer(self, access_token: str | None) -> None:
        # A client created later picks the token up from the session state
        if self._oauth_client is None:
            return
        if access_token:
            self._oauth_client.token = {"access_token": access_token, "token_type": "Bearer"}
        else:
            self._oauth_client.token = None

    def _codec(self) -> IdTokenCodec:
        if self._token_codec is not None:
            return self._token_codec
        return IdTokenCodec(
            client_id=self._client_id,
            client_secret=self._client_secret,
            secret_base64_encoded=self.config.secret_base64_encoded,
            leeway=self.config.leeway,
        )

    def _persist(self, kind: CredentialKind, value: Any) -> None:
        if self._policy.persists(kind):
            self._store.set(kind.value, value)

    def _ensure_exchanged(self) -> None:
        """Runs the code exchange at most once per session, settling unknown credentials afterwards."""
        self._state, should_exchange = begin_exchange(self._state)
        if not should_exchange:
            return
        try:
            self._exchange_code()
        finally:
            self._state = self._state.settled()

    def _exchange_code(self) -> bool:
        """
        Exchanges the request's authorization code for tokens and the user profile.

        Returns:
            bool: True if a code was exchanged, False if the request carries no code.

        Raises:
            ApiError: If the token endpoint fails or omits the access token or the ID token.
            InvalidTokenError: If the ID token cannot be decoded.
        """
        code = get_authorization_code()
        if code is None:
            logger.debug("No authorization code in the current request, skipping exchange")
            return False

        if isinstance(self._store, SessionStore) and not self._store.is_bound():
            raise WebAuthError("No request session is bound to persist credentials. Use request_scope(session=...).")

        self.debug_info(f"Code: {code}")

        with tracer.start_as_current_span("exchange_code"):
            token_url = self.generate_url("token")
            logger.info(f"Exchanging authorization code at {token_url}")
            try:
                raw = self.oauth_client.fetch_token(
                    token_url,
                    grant_type="authorization_code",
                    code=code,
                    redirect_uri=self._redirect_uri,
                    headers={**TOKEN_REQUEST_HEADERS, CLIENT_INFO_HEADER: client_info_header()},
                )
            except AuthlibBaseError as e:
                logger.warning(f"Code exchange rejected: {e.error}")
                raise ApiError(f"Code exchange failed: {e}") from e
            except httpx.HTTPError as e:
                logger.error(f"Code exchange request failed: {e}")
                raise ApiError(f"Code exchange request failed: {e}") from e
            except (TypeError, ValueError) as e:
                # Non-JSON body
                logger.error("Token endpoint returned a malformed response")
                self._install_bearer(None)
                raise ApiError(f"Invalid response from token endpoint: {e}") from e

            if not isinstance(raw, Mapping):
                logger.error("Token endpoint returned a non-object response")
                self._install_bearer(None)
                raise ApiError("Invalid response from token endpoint: expected a JSON object")

            self.debug_info(json.dumps(dict(raw), default=str))

            try:
                response = TokenResponse.model_validate(dict(raw))
            except ValidationError as e:
                self._install_bearer(None)
                raise ApiError(f"Invalid response from token endpoint: {e}") from e

            if not response.access_token:
                self._install_bearer(None)
                raise ApiError("Invalid access_token - Retry login.")
            if not response.id_token:
                self._install_bearer(None)
                raise ApiError("Missing JWT after code exchange. Remember to ask for openid scope.")

            self.set_access_token(response.access_token)
            self.set_id_token(response.id_token)

            claims = self._codec().decode(response.id_token)

            user = self._profile().get(self._domain, response.id_token, str(claims["sub"]))
            self.set_user(user)
            logger.info("Authorization code exchanged")

        return True

    # Credentials

    def get_user(self) -> dict[str, Any] | None:
        """
        Returns the user profile, exchanging the authorization code first if needed.

        Returns:
            dict[str, Any] | None: The profile, or None if unauthenticated or not a well-formed record.
        """
        if self._state.user is UNKNOWN:
            self._ensure_exchanged()
        user = self._state.user
        if not isinstance(user, Mapping):
            return None
        return dict(user)

    def get_user_info(self) -> dict[str, Any] | None:
        """Deprecated alias of `get_user`."""
        warnings.warn("get_user_info() is deprecated, use get_user()", DeprecationWarning, stacklevel=2)
        return self.get_user()

    def set_user(self, user: Mapping[str, Any] | None) -> "AuthSession":
        self._persist(CredentialKind.USER, user)
        self._state = self._state.with_value(CredentialKind.USER, user)
        return self

    def get_access_token(self) -> str | None:
        if self._state.access_token is UNKNOWN:
            self._ensure_exchanged()
        return self._state.access_token  # type: ignore[no-any-return]

    def set_access_token(self, access_token: str | None) -> "AuthSession":
        """Sets the access token, installs it as the bearer credential and persists it if the policy allows."""
        self._persist(CredentialKind.ACCESS_TOKEN, access_token)
        self._state = self._state.with_value(CredentialKind.ACCESS_TOKEN, access_token)
        self._install_bearer(access_token)
        return self

    def get_id_token(self) -> str | None:
        if self._state.id_token is UNKNOWN:
            self._ensure_exchanged()
        return self._state.id_token  # type: ignore[no-any-return]

    def set_id_token(self, id_token: str | None) -> "AuthSession":
        self._persist(CredentialKind.ID_TOKEN, id_token)
        self._state = self._state.with_value(CredentialKind.ID_TOKEN, id_token)
        return self

    def get_user_metadata(self) -> dict[str, Any] | None:
        user = self.get_user()
        return user.get("user_metadata") if user else None

    def get_app_metadata(self) -> dict[str, Any] | None:
        user = self.get_user()
        return user.get("app_metadata") if user else None

    def update_user_metadata(self, metadata: Mapping[str, Any]) -> dict[str, Any]:
        """
        Updates the user metadata through `PATCH /api/v2/users/{user_id}`.

        To delete an attribute set it to None, e.g. `{"old_attr": None}`. Omitted
        attributes are kept. The local profile is replaced by the server's response.

        Args:
            metadata: The partial metadata record.

        Returns:
            dict[str, Any]: The updated profile.

        Raises:
            ApiError: If there is no authenticated user or the update fails.
        """
        user = self.get_user()
        if not user or "user_id" not in user:
            raise ApiError("Cannot update user metadata: no authenticated user.")
        id_token = self.get_id_token()
        if not id_token:
            raise ApiError("Cannot update user metadata: missing ID token.")

        with tracer.start_as_current_span("update_user_metadata"):
            updated = self._profile().update(
                self._domain,
                id_token,
                str(user["user_id"]),
                {"user_metadata": dict(metadata)},
            )
        self.set_user(updated)
        return updated

    def logout(self) -> None:
        """Removes all persisted credentials, whatever the persistence policy, and clears the session."""
        self._state = self._state.cleared()
        self._install_bearer(None)
        self.delete_all_persistent_data()

    def delete_all_persistent_data(self) -> None:
        for kind in CredentialKind:
            self._store.delete(kind.value)

    # Utilities

    def generate_url(self, key: str, path: str = "/") -> str:
        """Builds the URL of a named Auth0 endpoint for this session's domain."""
        return generate_url(self._domain, key, path)

    def debug_info(self, info: Any) -> None:
        """
        Sends `info` to the debugger callback when debug mode is on.
        Errors raised by the debugger are logged and ignored.
        """
        if not self._debug_mode or self._debugger is None:
            return
        frame = inspect.currentframe()
        caller = frame.f_back.f_code.co_name if frame and frame.f_back else "<unknown>"
        try:
            self._debugger(f"{type(self).__name__}.{caller} > {info}")
        except Exception:
            logger.warning("Debugger callback raised an exception", exc_info=True)

    # Configuration

    @property
    def persistence_policy(self) -> PersistencePolicy:
        return self._policy

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def domain(self) -> str:
        return self._domain

    @domain.setter
    def domain(self, domain: str) -> None:
        try:
            self._domain = normalize_domain(domain)
        except ValueError as e:
            raise ConfigurationError(f"Invalid domain: {e}") from e

    @property
    def client_id(self) -> str:
        return self._client_id

    @client_id.setter
    def client_id(self, client_id: str) -> None:
        self._client_id = client_id
        if self._oauth_client is not None:
            self._oauth_client.client_id = client_id

    @property
    def client_secret(self) -> str:
        return self._client_secret.get_secret_value()

    @client_secret.setter
    def client_secret(self, client_secret: str) -> None:
        self._client_secret = SecretStr(client_secret)
        if self._oauth_client is not None:
            self._oauth_client.client_secret = client_secret

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    @redirect_uri.setter
    def redirect_uri(self, redirect_uri: str) -> None:
        self._redirect_uri = redirect_uri

    @property
    def debug_mode(self) -> bool:
        return self._debug_mode

    @debug_mode.setter
    def debug_mode(self, debug_mode: bool) -> None:
        self._debug_mode = debug_mode

    @property
    def debugger(self) -> Debugger | None:
        return self._debugger

    @debugger.setter
    def debugger(self, debugger: Debugger | None) -> None:
        self._debugger = debugger
