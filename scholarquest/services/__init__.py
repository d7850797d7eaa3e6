"""
ScholarQuest Services
=====================

Business logic services for the ScholarQuest backend.

Services:
- svg_validation: Structural and security checks for generated diagrams
- geometry_validation: Checks on the geometry metadata diagrams are rendered from
- diagram_cache: Process-wide LRU cache of validation results
- email_service: Email sending via Resend
- notification_service: New-assignment emails and in-app notifications
- password_validation: Sign-up password strength rules
- login_rate_limit: Sign-in attempt limits backed by Supabase RPCs
"""

# Services are imported directly when needed to avoid circular imports
# Example: from scholarquest.services.svg_validation import validate_svg

__all__ = [
    'svg_validation',
    'geometry_validation',
    'diagram_cache',
    'email_service',
    'notification_service',
    'password_validation',
    'login_rate_limit',
]
