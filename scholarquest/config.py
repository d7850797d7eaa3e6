"""
Configuration management for the ScholarQuest backend.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent.parent
PACKAGE_DIR = Path(__file__).parent
STATIC_DIR = PACKAGE_DIR / "static"

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")

# Email (Resend)
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
RESEND_FROM_EMAIL = os.getenv("RESEND_FROM_EMAIL", "ScholarQuest <no-reply@scholar-quest.com>")

# Public app URL, used for links inside notification emails
APP_URL = os.getenv("APP_URL", "https://scholar-quest-rewards.lovable.app")

# Shared secret the database webhook sends with notification hooks
NOTIFY_WEBHOOK_SECRET = os.getenv("NOTIFY_WEBHOOK_SECRET", "")

# Cookie the SPA stores the Supabase access token in
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "sb-access-token")

# Diagram validation cache
DIAGRAM_CACHE_SIZE = int(os.getenv("DIAGRAM_CACHE_SIZE", "256"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Server configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
DEBUG = os.getenv("DEBUG", "").lower() in ("1", "true", "yes")


class Config:
    """Application configuration class."""

    def __init__(self):
        self.supabase_url = SUPABASE_URL
        self.supabase_service_key = SUPABASE_SERVICE_KEY
        self.supabase_jwt_secret = SUPABASE_JWT_SECRET
        self.resend_api_key = RESEND_API_KEY
        self.resend_from_email = RESEND_FROM_EMAIL
        self.app_url = APP_URL
        self.notify_webhook_secret = NOTIFY_WEBHOOK_SECRET
        self.session_cookie_name = SESSION_COOKIE_NAME
        self.diagram_cache_size = DIAGRAM_CACHE_SIZE
        self.log_level = LOG_LEVEL

    def to_dict(self):
        # Secrets are reported as configured/not configured only
        return {
            "supabase_url": self.supabase_url,
            "supabase_configured": bool(self.supabase_url and self.supabase_service_key),
            "jwt_configured": bool(self.supabase_jwt_secret),
            "email_configured": bool(self.resend_api_key),
            "resend_from_email": self.resend_from_email,
            "app_url": self.app_url,
            "session_cookie_name": self.session_cookie_name,
            "diagram_cache_size": self.diagram_cache_size,
            "log_level": self.log_level,
        }

    def update(self, data: dict):
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)


# Global config instance
config = Config()
