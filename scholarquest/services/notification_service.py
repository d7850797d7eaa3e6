"""
Assignment Notifications
========================

Emails every student in a class when their teacher posts a new assignment,
and records an in-app notification for each of them.

Called by the database webhook through
POST /api/hooks/notify-student-new-assignment.
"""
import html
import logging
from datetime import datetime

from scholarquest.config import config

logger = logging.getLogger(__name__)

DEFAULT_TEACHER_NAME = "Your Teacher"


class NotificationError(Exception):
    """Notifications could not be assembled or delivered."""


def format_due_date(due_at):
    """Format an ISO timestamp as 'Monday, January 6, 2025'."""
    if not due_at:
        return "No due date"
    try:
        dt = datetime.fromisoformat(str(due_at).replace('Z', '+00:00'))
    except ValueError:
        return str(due_at)
    return f"{dt:%A, %B} {dt.day}, {dt.year}"


def build_new_assignment_email(assignment: dict, class_name: str, app_url: str = None) -> tuple:
    """
    Build subject and HTML body for a new-assignment email.

    Returns:
        (subject, html)
    """
    app_url = (app_url or config.app_url).rstrip('/')
    title = html.escape(assignment.get('title') or 'Untitled Assignment')
    subject = f"New Assignment: {assignment.get('title') or 'Untitled Assignment'}"

    description = ''
    if assignment.get('description'):
        description = f'<p style="color: #4b5563;">{html.escape(assignment["description"])}</p>'

    rewards = ''
    if assignment.get('xp_reward'):
        rewards = f"{assignment['xp_reward']} XP"
        if assignment.get('coin_reward'):
            rewards += f" + {assignment['coin_reward']} coins"
        rewards = f'<p style="margin: 8px 0;"><strong>Rewards:</strong> {rewards}</p>'

    link = f"{app_url}/assignments/{assignment.get('id', '')}"

    body = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #2563eb;">New Assignment Posted</h2>'
        f'<p>Your teacher has posted a new assignment in <strong>{html.escape(class_name or "your class")}</strong>!</p>'
        '<div style="background: #f3f4f6; padding: 16px; border-radius: 8px; margin: 20px 0;">'
        f'<h3 style="margin-top: 0; color: #1f2937;">{title}</h3>'
        + description +
        '<div style="margin-top: 16px;">'
        f'<p style="margin: 8px 0;"><strong>Subject:</strong> {html.escape(assignment.get("subject") or "General")}</p>'
        f'<p style="margin: 8px 0;"><strong>Due Date:</strong> {format_due_date(assignment.get("due_at"))}</p>'
        + rewards +
        '</div></div>'
        f'<p><a href="{html.escape(link)}" style="display: inline-block; background: #2563eb; color: white; '
        'padding: 12px 24px; text-decoration: none; border-radius: 6px; margin-top: 16px;">Start Assignment</a></p>'
        '<p style="color: #6b7280; font-size: 14px; margin-top: 24px;">Good luck!</p>'
        '</div>'
    )
    return subject, body


def _fetch_single(db, table, columns, row_id, label):
    try:
        result = db.table(table).select(columns).eq('id', row_id).single().execute()
    except Exception as e:
        raise NotificationError(f"{label} not found: {e}") from e
    if not result.data:
        raise NotificationError(f"{label} not found: {row_id}")
    return result.data


def _fetch_teacher_name(db, teacher_id):
    try:
        result = db.table('profiles').select('full_name').eq('id', teacher_id).single().execute()
        return (result.data or {}).get('full_name') or DEFAULT_TEACHER_NAME
    except Exception as e:
        logger.warning("Could not fetch teacher name for %s: %s", teacher_id, str(e))
        return DEFAULT_TEACHER_NAME


def _fetch_enrollments(db, class_id):
    try:
        result = (db.table('student_classes')
                  .select('student_id, profiles(email, full_name)')
                  .eq('class_id', class_id)
                  .execute())
    except Exception as e:
        raise NotificationError(f"Failed to fetch students: {e}") from e
    return result.data or []


def notify_students_of_new_assignment(assignment_id, class_id, teacher_id, db=None, emailer=None):
    """
    Email all students enrolled in a class about a new assignment.

    Args:
        assignment_id: The new assignment's id
        class_id: Class the assignment was posted to
        teacher_id: Posting teacher (recorded on each notification)
        db: Supabase client (defaults to the shared admin client)
        emailer: ScholarQuestEmailer (defaults to a new one)

    Returns:
        Dict with success/emails_sent/recipients, or skipped/reason

    Raises:
        NotificationError when the assignment or class is missing, the
        enrollment query fails, or the email provider rejects the batch
    """
    if db is None:
        from scholarquest.supabase_client import get_supabase
        db = get_supabase()
    if emailer is None:
        from scholarquest.services.email_service import ScholarQuestEmailer
        emailer = ScholarQuestEmailer()

    assignment = _fetch_single(
        db, 'assignments',
        'id, title, description, subject, due_at, xp_reward, coin_reward',
        assignment_id, 'Assignment',
    )
    class_data = _fetch_single(db, 'classes', 'id, name, teacher_id', class_id, 'Class')
    teacher_name = _fetch_teacher_name(db, class_data.get('teacher_id') or teacher_id)

    enrollments = _fetch_enrollments(db, class_id)
    if not enrollments:
        logger.info("No students enrolled in class %s, skipping notifications", class_id)
        return {"skipped": True, "reason": "no_students"}

    students = [e for e in enrollments if (e.get('profiles') or {}).get('email')]
    if not students:
        logger.info("No students in class %s have email addresses", class_id)
        return {"skipped": True, "reason": "no_student_emails"}

    subject, body = build_new_assignment_email(assignment, class_data.get('name', ''))

    messages = [
        emailer.build_message(e['profiles']['email'], subject, body, sender_name=teacher_name)
        for e in students
    ]
    try:
        emailer.send_batch(messages)
    except Exception as e:
        raise NotificationError(str(e)) from e

    notification_rows = [{
        "user_id": e['student_id'],
        "type": "new_assignment",
        "title": subject,
        "message": f"Posted in {class_data.get('name', '')}",
        "data": {
            "assignment_id": assignment.get('id'),
            "class_id": class_data.get('id'),
            "teacher_id": class_data.get('teacher_id'),
        },
        "read": False,
    } for e in students]
    # Emails are already sent, so recording them is best effort
    try:
        db.table('notifications').insert(notification_rows).execute()
    except Exception as e:
        logger.warning("Could not record notifications for assignment %s: %s", assignment_id, str(e))

    recipients = [e['profiles']['email'] for e in students]
    logger.info("Notified %d students about assignment %s", len(recipients), assignment_id)
    return {
        "success": True,
        "emails_sent": len(recipients),
        "recipients": recipients,
    }
