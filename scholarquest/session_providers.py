"""
Session providers and routers the SessionGate runs against.

- SupabaseSessionProvider: wraps a supabase-py client that holds a user
  session (long-lived, receives auth events).
- RequestSessionProvider: resolves the access token of one HTTP request
  through the Supabase admin API. No event stream.
- RequestRouter: records where the gate wants to send the request.
"""
import logging

from scholarquest.session_gate import Session
from scholarquest.supabase_client import get_supabase

logger = logging.getLogger(__name__)


class _NoSubscription:
    """Subscription handle for providers without a live event stream."""

    def unsubscribe(self):
        return None


class SupabaseSessionProvider:
    """Adapter over a supabase-py client's auth API."""

    def __init__(self, client):
        self.client = client

    def get_session(self):
        return Session.from_provider_session(self.client.auth.get_session())

    def on_auth_state_change(self, callback):
        def _forward(event, session):
            snapshot = Session.from_provider_session(session) if session is not None else None
            callback(event, snapshot)

        return self.client.auth.on_auth_state_change(_forward)

    def sign_out(self):
        self.client.auth.sign_out()


class RequestSessionProvider:
    """
    Per-request provider for the Flask page hook.

    The token comes from the Authorization header or the session cookie.
    A forced sign-out revokes the token server-side and flags the cookie
    for removal on the response.
    """

    def __init__(self, token, client=None):
        self.token = token
        self._client = client
        self.signed_out = False

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def get_session(self):
        if not self.token:
            return Session.anonymous()
        response = self.client.auth.get_user(self.token)
        user = getattr(response, 'user', None) if response is not None else None
        return Session.from_user(user)

    def on_auth_state_change(self, callback):
        return _NoSubscription()

    def sign_out(self):
        if self.token:
            self.client.auth.admin.sign_out(self.token)
        self.signed_out = True
        logger.info("Forced sign-out of disallowed session")


class RequestRouter:
    """Router for a single request: first navigation wins."""

    def __init__(self, pathname):
        self.pathname = pathname
        self.target = None
        self.replace = False

    def navigate(self, path, replace=False):
        if self.target is None and path != self.pathname:
            self.target = path
            self.replace = replace
