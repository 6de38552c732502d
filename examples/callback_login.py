import os
import sys

# Add src to path for running directly
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from coreason_webauth import ApiError, AuthSession, request_scope


def handle_callback(query_params: dict[str, str], session: dict[str, object]) -> None:
    """
    Demonstrates the callback handler of a web application.

    A framework would pass `request.query_params` and `request.session`; here the
    session is a plain dict that survives between the two simulated requests.
    """
    with request_scope(params=query_params, session=session):
        auth = AuthSession(
            {
                "domain": os.getenv("AUTH0_DOMAIN", "tenant.auth0.com"),
                "client_id": os.getenv("AUTH0_CLIENT_ID", "client-id"),
                "client_secret": os.getenv("AUTH0_CLIENT_SECRET", "client-secret"),
                "redirect_uri": "http://localhost:8000/callback",
                "debug": True,
                "debugger": lambda message: print(f"    [debug] {message}"),
            }
        )
        with auth:
            print(f">>> Authorize URL: {auth.generate_url('authorize')}")
            try:
                user = auth.get_user()
            except ApiError as e:
                # The user has to go through the login page again
                print(f">>> Login failed, restart the flow: {e}")
                return
            print(f">>> User: {user}")


if __name__ == "__main__":
    browser_session: dict[str, object] = {}
    # First request: no code yet, nothing to exchange
    handle_callback({}, browser_session)
    # Second request: the IdP redirected back with a code (fails without a real tenant)
    handle_callback({"code": "example-code"}, browser_session)
