"""
Centralized configuration for all environments.

Select a config by setting:
  APP_CONFIG=toxicity_dashboard.config.DevConfig      # local dev
  APP_CONFIG=toxicity_dashboard.config.ProdConfig     # production (default if unset)
  APP_CONFIG=toxicity_dashboard.config.TestConfig     # pytest

Notes:
- SECRET_KEY is read from FLASK_SECRET_KEY
- The Perspective key is read from PERSPECTIVE_API_KEY and never has a default
- Rate limiting uses Flask-Limiter v3 keys (RATELIMIT_*).
"""

from __future__ import annotations
import os
from datetime import timedelta


class BaseConfig:
    # Secrets & basics
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "")
    DEBUG = False
    TESTING = False

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=30)
    SESSION_COOKIE_SECURE = True  # Only send cookies over HTTPS (overridden in dev)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Perspective comment analyzer
    PERSPECTIVE_API_KEY = os.getenv("PERSPECTIVE_API_KEY", "")
    PERSPECTIVE_API_URL = os.getenv(
        "PERSPECTIVE_API_URL",
        "https://commentanalyzer.googleapis.com/v1alpha1/comments:analyze",
    )
    PERSPECTIVE_TIMEOUT = float(os.getenv("PERSPECTIVE_TIMEOUT", "10"))
    PERSPECTIVE_LANGUAGES = ["en"]

    # Perspective rejects comments above 20 KB
    MAX_TEXT_LENGTH = int(os.getenv("MAX_TEXT_LENGTH", "20000"))

    # Supabase (Database + Auth)
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    SUPABASE_REDIRECT_URL = os.getenv("SUPABASE_REDIRECT_URL", "http://localhost:5000/auth/callback")
    MODERATION_TABLE = os.getenv("MODERATION_TABLE", "moderation_results")

    # Flask-Limiter v3 (only the signup route is limited)
    RATELIMIT_ENABLED = os.getenv("RATELIMIT_ENABLED", "true").lower() == "true"
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    SIGNUP_RATE_LIMIT = "5 per minute; 20 per hour"

    # Misc
    PREFERRED_URL_SCHEME = os.getenv("PREFERRED_URL_SCHEME", "https")
    SEND_FILE_MAX_AGE_DEFAULT = int(os.getenv("SEND_FILE_MAX_AGE_DEFAULT", "3600"))


class ProdConfig(BaseConfig):
    """Production settings (selected by default if APP_CONFIG is unset)."""
    pass


class DevConfig(BaseConfig):
    """Developer-friendly settings."""
    ENV = "development"
    DEBUG = True
    TEMPLATES_AUTO_RELOAD = True
    SEND_FILE_MAX_AGE_DEFAULT = 0
    PREFERRED_URL_SCHEME = "http"
    # Allow cookies over HTTP in dev
    SESSION_COOKIE_SECURE = False
    SIGNUP_RATE_LIMIT = "100 per minute; 500 per hour"


class TestConfig(BaseConfig):
    """CI/pytest settings."""
    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-for-testing-only"
    PERSPECTIVE_API_KEY = "test-perspective-key"
    # Supabase stays disabled; tests inject their own store
    SUPABASE_URL = ""
    SUPABASE_ANON_KEY = ""
    SUPABASE_SERVICE_ROLE_KEY = ""
    SESSION_COOKIE_SECURE = False
    RATELIMIT_ENABLED = False
    WTF_CSRF_ENABLED = False
    TEMPLATES_AUTO_RELOAD = True
    SEND_FILE_MAX_AGE_DEFAULT = 0
