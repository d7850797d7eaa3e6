"""
Login Rate Limiting
===================

Thin layer over two Postgres functions in Supabase:

- check_login_rate_limit(p_email, p_ip_address) -> [{is_allowed, attempts_remaining, lockout_until}]
- record_login_attempt(p_email, p_ip_address, p_success)

The sign-in form checks before submitting credentials and records every
outcome. A failing check never blocks a login; a failing record is logged
and dropped.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from scholarquest.supabase_client import get_supabase

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


@dataclass(frozen=True)
class RateLimitStatus:
    is_allowed: bool
    attempts_remaining: int = DEFAULT_MAX_ATTEMPTS
    lockout_until: Optional[datetime] = None

    @classmethod
    def unrestricted(cls):
        return cls(is_allowed=True)

    def to_dict(self):
        return {
            "is_allowed": self.is_allowed,
            "attempts_remaining": self.attempts_remaining,
            "lockout_until": self.lockout_until.isoformat() if self.lockout_until else None,
        }


def _parse_timestamp(value):
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            logger.warning("Unparseable lockout_until from rate limit check: %s", value)
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def check_login_rate_limit(email, ip_address=None, db=None) -> RateLimitStatus:
    """
    Ask the database whether another sign-in attempt is allowed for an email.
    Any failure allows the attempt.
    """
    try:
        if db is None:
            db = get_supabase()
        result = db.rpc('check_login_rate_limit', {
            'p_email': email,
            'p_ip_address': ip_address,
        }).execute()
    except Exception as e:
        logger.error("Rate limit check error: %s", str(e))
        return RateLimitStatus.unrestricted()

    rows = result.data or []
    row = rows[0] if isinstance(rows, list) and rows else (rows if isinstance(rows, dict) else {})

    is_allowed = row.get('is_allowed')
    attempts_remaining = row.get('attempts_remaining')
    return RateLimitStatus(
        is_allowed=True if is_allowed is None else bool(is_allowed),
        attempts_remaining=DEFAULT_MAX_ATTEMPTS if attempts_remaining is None else attempts_remaining,
        lockout_until=_parse_timestamp(row.get('lockout_until')),
    )


def record_login_attempt(email, success, ip_address=None, db=None) -> bool:
    """Record a sign-in outcome. Returns False if it could not be stored."""
    try:
        if db is None:
            db = get_supabase()
        db.rpc('record_login_attempt', {
            'p_email': email,
            'p_ip_address': ip_address,
            'p_success': bool(success),
        }).execute()
        return True
    except Exception as e:
        logger.error("Record attempt error: %s", str(e))
        return False


def format_lockout_time(lockout_until, now=None):
    """Time left on a lockout, rounded up to whole minutes: 'now', '1 minute', '7 minutes'."""
    if lockout_until is None:
        return "now"
    now = now or datetime.now(timezone.utc)
    seconds = (lockout_until - now).total_seconds()
    if seconds <= 0:
        return "now"

    minutes = math.ceil(seconds / 60)
    if minutes == 1:
        return "1 minute"
    return f"{minutes} minutes"


def failed_login_message(attempts_remaining):
    """Message shown after a rejected password, given attempts left after it."""
    if attempts_remaining > 0:
        plural = "" if attempts_remaining == 1 else "s"
        return f"Invalid email or password. {attempts_remaining} attempt{plural} remaining."
    return "Account locked. Please try again later."


def lockout_message(status: RateLimitStatus, now=None):
    return f"Please try again in {format_lockout_time(status.lockout_until, now=now)}"