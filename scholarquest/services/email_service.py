#!/usr/bin/env python3
"""
ScholarQuest - Email Service
============================
Send notification emails to students via the Resend API.

Setup:
1. Add RESEND_API_KEY to .env file
2. Verify your sending domain at https://resend.com/domains
3. Optionally set RESEND_FROM_EMAIL (defaults to no-reply@scholar-quest.com)
"""

import logging

import resend

from scholarquest.config import config

logger = logging.getLogger(__name__)

# Resend accepts at most 100 messages per batch call
BATCH_LIMIT = 100


class EmailDeliveryError(Exception):
    """The email provider rejected a batch."""


class ScholarQuestEmailer:
    """Send notification emails via Resend API."""

    def __init__(self, api_key: str = None, from_email: str = None):
        self.from_email = from_email or config.resend_from_email
        self._init_resend(api_key if api_key is not None else config.resend_api_key)

    def _init_resend(self, api_key):
        """Initialize Resend with the configured API key."""
        if api_key:
            resend.api_key = api_key
            self.resend_available = True
        else:
            self.resend_available = False

    def build_message(self, to_email: str, subject: str, html: str, reply_to: str = None,
                      sender_name: str = None) -> dict:
        """Build Resend send params for one recipient."""
        sender = self.from_email
        if sender_name:
            # Keep the verified address, show the teacher's name
            address = sender.split('<', 1)[1].rstrip('>') if '<' in sender else sender
            sender = f"{sender_name} <{address}>"

        params = {
            "from": sender,
            "to": [to_email],
            "subject": subject,
            "html": html,
        }
        if reply_to:
            params["reply_to"] = reply_to
        return params

    def send_email(self, to_email: str, name: str, subject: str, html: str,
                   reply_to: str = None) -> bool:
        """
        Send a single email via Resend.

        Args:
            to_email: Recipient email address
            name: Recipient's name (for logging)
            subject: Email subject
            html: Email body (HTML)
            reply_to: Optional reply-to address

        Returns:
            True if successful
        """
        if not self.resend_available:
            logger.warning("Resend API key not configured. Add RESEND_API_KEY to .env")
            return False

        try:
            response = resend.Emails.send(self.build_message(to_email, subject, html, reply_to))
            if response and response.get('id'):
                logger.info("Sent email to %s (%s)", name, to_email)
                return True
            logger.error("Failed to send to %s: no response ID", to_email)
            return False
        except Exception as e:
            logger.error("Failed to send to %s: %s", to_email, str(e))
            return False

    def send_batch(self, messages: list) -> int:
        """
        Send many prepared messages through the Resend batch endpoint.

        Args:
            messages: List of params dicts from build_message()

        Returns:
            Number of messages accepted by Resend

        Raises:
            EmailDeliveryError if email is not configured or a batch fails
        """
        if not self.resend_available:
            raise EmailDeliveryError("Email not configured. Make sure RESEND_API_KEY is in .env file.")

        accepted = 0
        for start in range(0, len(messages), BATCH_LIMIT):
            chunk = messages[start:start + BATCH_LIMIT]
            try:
                response = resend.Batch.send(chunk)
            except Exception as e:
                raise EmailDeliveryError(f"Resend batch failed: {e}") from e
            data = (response or {}).get('data') or []
            accepted += len(data)
        logger.info("Resend accepted %d of %d messages", accepted, len(messages))
        return accepted

    def test_connection(self, test_email: str = None) -> bool:
        """Test the email configuration by sending a test email."""
        to_email = test_email or "delivered@resend.dev"
        logger.info("Sending test email to %s", to_email)
        return self.send_email(
            to_email,
            "Test",
            "ScholarQuest Test Email",
            "<p>If you received this, ScholarQuest email is working!</p>",
        )


# =============================================================================
# STANDALONE USAGE
# =============================================================================

if __name__ == "__main__":
    import argparse

    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="ScholarQuest Email Service")
    parser.add_argument("--test", type=str, nargs='?', const='delivered@resend.dev',
                        help="Send test email (optionally provide email address)")
    args = parser.parse_args()

    if args.test:
        if ScholarQuestEmailer().test_connection(args.test):
            print("\nTest email sent successfully!")
        else:
            print("\nTest failed. Check your RESEND_API_KEY in .env")
    else:
        parser.print_help()
