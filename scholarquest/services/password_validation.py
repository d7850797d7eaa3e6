"""
Password strength rules for the sign-up form.
"""
import re

PASSWORD_REQUIREMENTS = [
    ("length", "At least 8 characters", lambda pw: len(pw) >= 8),
    ("uppercase", "One uppercase letter", lambda pw: re.search(r'[A-Z]', pw) is not None),
    ("lowercase", "One lowercase letter", lambda pw: re.search(r'[a-z]', pw) is not None),
    ("number", "One number", lambda pw: re.search(r'\d', pw) is not None),
    ("special", "One special character (!@#$%^&*)",
     lambda pw: re.search(r'[!@#$%^&*(),.?":{}|<>]', pw) is not None),
]

STRONG_LENGTH = 12


def _strength(met_count, password):
    if met_count <= 2:
        return "weak"
    if met_count <= 3:
        return "fair"
    if met_count == 4 or len(password) < STRONG_LENGTH:
        return "good"
    return "strong"


def validate_password(password: str) -> dict:
    """
    Check a password against the sign-up requirements.

    Returns:
        Dict with is_valid, errors (labels of unmet requirements),
        strength (weak/fair/good/strong) and per-requirement results.
    """
    password = password or ""
    requirements = [
        {"id": req_id, "label": label, "met": bool(test(password))}
        for req_id, label, test in PASSWORD_REQUIREMENTS
    ]
    errors = [r["label"] for r in requirements if not r["met"]]
    met_count = len(requirements) - len(errors)

    return {
        "is_valid": not errors,
        "errors": errors,
        "strength": _strength(met_count, password),
        "requirements": requirements,
    }
