"""
Auth Routes for ScholarQuest.
Reports the caller's session state to the SPA, checks password
strength on the sign-up form and rate-limits sign-in attempts.
"""
import logging
from flask import Blueprint, request, jsonify, g

from scholarquest.auth import resolve_email_verified, validate_token, get_request_token
from scholarquest.session_gate import get_target_path, ROLE_TEACHER
from scholarquest.services.password_validation import validate_password
from scholarquest.services.login_rate_limit import (
    check_login_rate_limit, record_login_attempt, failed_login_message, lockout_message,
)

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


@auth_bp.route('/api/auth/session', methods=['GET'])
def session_status():
    """
    Role, verification state and dashboard path of the authenticated caller.
    Teachers are reported as not allowed on this surface.
    """
    role = getattr(g, 'user_role', 'student')
    return jsonify({
        "user_id": g.user_id,
        "email": g.user_email,
        "role": role,
        "email_verified": resolve_email_verified(),
        "allowed": role != ROLE_TEACHER,
        "home": get_target_path(role),
    })


@auth_bp.route('/api/auth/password-strength', methods=['POST'])
def password_strength():
    """
    PUBLIC endpoint, no JWT required.
    Checks a candidate password against the sign-up requirements.
    """
    data = request.get_json(silent=True)
    if not data or not isinstance(data.get("password"), str):
        return jsonify({"error": "Missing password"}), 400

    return jsonify(validate_password(data["password"]))


@auth_bp.route('/api/auth/rate-limit/check', methods=['POST'])
def rate_limit_check():
    """
    PUBLIC endpoint, no JWT required.
    Called by the sign-in form before submitting credentials.
    Body: {"email": "..."}
    """
    data = request.get_json(silent=True) or {}
    email = data.get('email')
    if not isinstance(email, str) or not email.strip():
        return jsonify({"error": "Missing email"}), 400

    status = check_login_rate_limit(email)
    response = status.to_dict()
    if not status.is_allowed:
        response["message"] = lockout_message(status)
    return jsonify(response)


@auth_bp.route('/api/auth/login-attempt', methods=['POST'])
def login_attempt():
    """
    PUBLIC endpoint for failed attempts.
    A successful attempt clears the failure count, so it needs the new
    session's bearer token for the same email.
    Body: {"email": "...", "success": bool}
    """
    data = request.get_json(silent=True) or {}
    email = data.get('email')
    if not isinstance(email, str) or not email.strip():
        return jsonify({"error": "Missing email"}), 400
    success = data.get('success') is True

    if success:
        token = get_request_token()
        payload = validate_token(token) if token else None
        if payload is None or (payload.get('email') or '').lower() != email.strip().lower():
            return jsonify({"error": "Successful attempts require the signed-in user's token"}), 403

    recorded = record_login_attempt(email, success)
    status = check_login_rate_limit(email)
    response = {"recorded": recorded, **status.to_dict()}
    if not success:
        response["message"] = failed_login_message(status.attempts_remaining)
    return jsonify(response)
