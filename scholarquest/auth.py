"""
Supabase authentication for ScholarQuest.

- /api/ routes: validates Bearer tokens, except public endpoints.
- Page routes: runs the SessionGate against the request's session and
  redirects when the gate navigates.
"""
import logging
import jwt
from flask import request, jsonify, redirect, g, after_this_request

from scholarquest.config import config
from scholarquest.session_gate import SessionGate, normalize_role
from scholarquest.session_providers import RequestSessionProvider, RequestRouter

logger = logging.getLogger(__name__)


# API routes that don't require authentication
PUBLIC_API_PREFIXES = [
    '/api/hooks/',                  # Database webhooks (secured by shared secret)
]

PUBLIC_API_EXACT = [
    '/api/health',
    '/api/auth/password-strength',  # Used on the sign-up form, before an account exists
    '/api/auth/rate-limit/check',   # Sign-in form, before a session exists
    '/api/auth/login-attempt',      # Success records check the token in the route
]


def get_jwt_secret():
    """Get the Supabase JWT secret from config."""
    secret = config.supabase_jwt_secret
    if not secret:
        raise RuntimeError('SUPABASE_JWT_SECRET not configured')
    return secret


def validate_token(token):
    """
    Validate a Supabase JWT and return the decoded payload.
    Returns None if invalid.
    """
    try:
        payload = jwt.decode(
            token,
            get_jwt_secret(),
            algorithms=['HS256'],
            audience='authenticated',
        )
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def is_public_api_route(path):
    """Check if an API route is public (no auth required)."""
    if path in PUBLIC_API_EXACT:
        return True
    for prefix in PUBLIC_API_PREFIXES:
        if path.startswith(prefix):
            return True
    return False


def is_asset_path(path):
    """Static files (anything whose last segment has an extension)."""
    return '.' in path.rsplit('/', 1)[-1]


def get_request_token():
    """Access token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[7:]
    return request.cookies.get(config.session_cookie_name, '')


def _check_api_auth():
    if is_public_api_route(request.path):
        return None

    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return jsonify({'error': 'Authentication required'}), 401

    token = auth_header[7:]  # Strip 'Bearer '
    payload = validate_token(token)
    if payload is None:
        return jsonify({'error': 'Invalid or expired token'}), 401

    # Attach user info to Flask's g object for use in route handlers
    metadata = payload.get('user_metadata') or {}
    g.user_id = payload.get('sub')
    g.user_email = payload.get('email', '')
    g.user_role = normalize_role(metadata.get('role'))
    # None when the token carries no flag; see resolve_email_verified()
    g.email_verified = metadata.get('email_verified')
    g.access_token = token
    return None


def resolve_email_verified(client=None):
    """
    Verification state of the authenticated caller.

    Not every Supabase access token carries user_metadata.email_verified.
    When the flag is absent, fall back to the user record's
    email_confirmed_at, the same field the page gate reads.
    """
    flag = getattr(g, 'email_verified', None)
    if flag is not None:
        return bool(flag)
    try:
        session = RequestSessionProvider(getattr(g, 'access_token', ''), client=client).get_session()
    except Exception as e:
        logger.warning("Could not look up email confirmation: %s", str(e))
        return False
    return session.email_verified


def run_page_gate(path, token, client=None):
    """
    Run the SessionGate for one page request.

    Returns:
        (redirect_target or None, signed_out)
    """
    provider = RequestSessionProvider(token, client=client)
    router = RequestRouter(path)
    gate = SessionGate(provider, router)
    gate.mount()
    gate.unmount()
    return router.target, provider.signed_out


def _check_page_session():
    if is_asset_path(request.path):
        return None

    target, signed_out = run_page_gate(request.path, get_request_token())

    if signed_out:
        @after_this_request
        def _clear_session_cookie(response):
            response.delete_cookie(config.session_cookie_name)
            return response

    if target is not None:
        logger.debug("Session gate redirect %s -> %s", request.path, target)
        return redirect(target, code=302)
    return None


def init_auth(app):
    """
    Register the before_request auth hook on the Flask app.
    Call this BEFORE registering blueprints.
    """
    @app.before_request
    def check_auth():
        if request.method == 'OPTIONS':
            return None
        if request.path.startswith('/api/'):
            return _check_api_auth()
        return _check_page_session()
