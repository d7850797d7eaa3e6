"""
Session redirect gate for ScholarQuest.

Decides, on mount and on every auth-state transition, whether the current
route should be swapped for another one (sign-in page, email verification,
or the user's dashboard), and exposes a loading flag while the first
session check is pending.

Usage:
    gate = SessionGate(provider, router)
    gate.mount()
    ...
    gate.route_changed()   # router.pathname changed
    ...
    gate.unmount()

The provider and router are duck-typed:
    provider.get_session() -> Session            (may raise)
    provider.on_auth_state_change(cb) -> subscription with unsubscribe()
    provider.sign_out()
    router.pathname
    router.navigate(path, replace=True)
"""
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


# Routes reachable without a session
PUBLIC_ROUTES = ['/', '/auth', '/privacy-policy', '/terms-of-service', '/verify-email']

PUBLIC_PREFIXES = [
    '/invite/',    # Class invite links, opened before the student has an account
]

AUTH_ROUTE = '/auth'
VERIFY_EMAIL_ROUTE = '/verify-email'
SIGNED_OUT_ROUTE = '/'

# Roles
ROLE_ADMIN = 'admin'
ROLE_PARENT = 'parent'
ROLE_TEACHER = 'teacher'
ROLE_STUDENT = 'student'
ROLE_NONE = 'none'

KNOWN_ROLES = (ROLE_ADMIN, ROLE_PARENT, ROLE_TEACHER, ROLE_STUDENT)

ROLE_HOMES = {
    ROLE_ADMIN: '/admin',
    ROLE_PARENT: '/parent',
}
DEFAULT_HOME = '/student'

# Auth events
SIGNED_IN = 'SIGNED_IN'
SIGNED_OUT = 'SIGNED_OUT'


@dataclass(frozen=True)
class RouteClassification:
    is_public: bool
    is_verify_email_route: bool


def is_public_route(path):
    """Check if a route is public (no session required)."""
    if path in PUBLIC_ROUTES:
        return True
    for prefix in PUBLIC_PREFIXES:
        if path.startswith(prefix):
            return True
    return False


def is_verify_email_route(path):
    return path == VERIFY_EMAIL_ROUTE


def classify_route(path) -> RouteClassification:
    return RouteClassification(
        is_public=is_public_route(path),
        is_verify_email_route=is_verify_email_route(path),
    )


def normalize_role(role) -> str:
    """
    Map a role from user metadata onto a known role.
    Matching is exact: anything missing or unrecognised (including
    "Teacher" or " admin") is treated as a student.
    """
    if role in KNOWN_ROLES:
        return role
    return ROLE_STUDENT


def get_target_path(role):
    """Dashboard a signed-in user lands on."""
    return ROLE_HOMES.get(role, DEFAULT_HOME)


def _read(obj, name, default=None):
    """Read a field from either a provider model object or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


@dataclass(frozen=True)
class Session:
    """Read-only snapshot of the provider's session state."""
    user_present: bool
    role: str = ROLE_NONE
    email_verified: bool = False

    @classmethod
    def anonymous(cls):
        return cls(user_present=False)

    @classmethod
    def from_user(cls, user):
        """Build a snapshot from a Supabase user (object or dict)."""
        if user is None:
            return cls.anonymous()
        metadata = _read(user, 'user_metadata') or {}
        return cls(
            user_present=True,
            role=normalize_role(_read(metadata, 'role')),
            email_verified=bool(_read(user, 'email_confirmed_at')),
        )

    @classmethod
    def from_provider_session(cls, session):
        """Build a snapshot from a Supabase session (object or dict), or None."""
        return cls.from_user(_read(session, 'user'))


class SessionGate:
    """
    Redirect gate bound to one view's lifetime.

    The initial check and the live event handler apply the same role and
    verification rules but use two separately coded "public path" tests:
    the initial check redirects away from every public route except
    /verify-email, the event handler redirects away from every public
    route except /auth. Keep them apart.
    """

    def __init__(self, provider, router):
        self.provider = provider
        self.router = router
        self.is_loading = not is_public_route(router.pathname)
        self._mounted = False
        self._subscription = None

    @property
    def mounted(self):
        return self._mounted

    def mount(self):
        """Subscribe to auth events and run the initial session check."""
        self._mounted = True
        self._subscription = self.provider.on_auth_state_change(self.handle_auth_event)
        self.check_auth()

    def unmount(self):
        """Stop reacting to anything still in flight and drop the subscription."""
        self._mounted = False
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def route_changed(self):
        """Re-run the gate against the router's current pathname."""
        self.unmount()
        self.mount()

    def _navigate(self, path):
        self.router.navigate(path, replace=True)

    def _settle(self):
        self.is_loading = False

    def check_auth(self):
        """Initial-load policy. Provider failures leave the user where they are."""
        pathname = self.router.pathname
        try:
            session = self.provider.get_session()

            if not self._mounted:
                return

            if session.user_present:
                if session.role == ROLE_TEACHER:
                    # Teachers use a separate surface
                    self.provider.sign_out()
                    self._settle()
                    return

                if not session.email_verified and not is_public_route(pathname):
                    self._navigate(VERIFY_EMAIL_ROUTE)
                    return

                if session.email_verified and is_verify_email_route(pathname):
                    self._navigate(get_target_path(session.role))
                    return

                if is_public_route(pathname) and not is_verify_email_route(pathname):
                    self._navigate(get_target_path(session.role))
            elif not is_public_route(pathname):
                self._navigate(AUTH_ROUTE)
        except Exception:
            logger.exception("Auth check error on %s", pathname)
        finally:
            if self._mounted:
                self._settle()

    def handle_auth_event(self, event, session: Optional[Session]):
        """Live-event policy, called by the provider subscription."""
        if not self._mounted:
            return

        if event == SIGNED_OUT:
            self._navigate(SIGNED_OUT_ROUTE)
        elif event == SIGNED_IN and session is not None and session.user_present:
            if session.role == ROLE_TEACHER:
                self.provider.sign_out()
                return

            if not session.email_verified:
                self._navigate(VERIFY_EMAIL_ROUTE)
                return

            pathname = self.router.pathname
            if is_public_route(pathname) and pathname != AUTH_ROUTE:
                self._navigate(get_target_path(session.role))
