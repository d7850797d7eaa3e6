"""
Notification Routes for ScholarQuest.
Webhook target that emails students when a teacher posts an assignment.
"""
import hmac
import logging
from flask import Blueprint, request, jsonify

from scholarquest.config import config
from scholarquest.services.notification_service import (
    notify_students_of_new_assignment,
)

notification_bp = Blueprint('notification', __name__)
logger = logging.getLogger(__name__)

WEBHOOK_SECRET_HEADER = 'X-Webhook-Secret'
REQUIRED_FIELDS = ('assignment_id', 'class_id', 'teacher_id')


def _webhook_authorized():
    """Compare the shared secret header in constant time."""
    expected = config.notify_webhook_secret
    if not expected:
        logger.error("NOTIFY_WEBHOOK_SECRET not configured, rejecting webhook")
        return False
    provided = request.headers.get(WEBHOOK_SECRET_HEADER, '')
    return hmac.compare_digest(provided, expected)


@notification_bp.route('/api/hooks/notify-student-new-assignment', methods=['POST'])
def notify_student_new_assignment():
    """
    PUBLIC endpoint, secured by shared secret, not JWT.
    Body: {"assignment_id", "class_id", "teacher_id"}
    """
    if not _webhook_authorized():
        return jsonify({"error": "Forbidden"}), 403

    data = request.get_json(silent=True) or {}
    missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
    if missing:
        return jsonify({"error": "Missing fields: " + ", ".join(missing)}), 400

    try:
        result = notify_students_of_new_assignment(
            data['assignment_id'], data['class_id'], data['teacher_id'],
        )
        return jsonify(result)
    except Exception as e:
        logger.error("Error sending student notifications: %s", str(e))
        return jsonify({"error": str(e)}), 500
