"""
Supabase client initialization and auth helpers.

Provides access to Supabase for:
- Authentication (Magic Link)
- Database access for moderation records (see moderation_records.py)

Clients are created by init_supabase() and stored on the app in
`app.extensions["supabase"]`, so every app built by create_app() carries its
own pair and nothing is shared through module globals.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any
from flask import current_app, has_app_context
from supabase import create_client, Client

logger = logging.getLogger(__name__)

EXTENSION_KEY = "supabase"


def _safe_log_error(message: str) -> None:
    """
    Log an error through the app logger when an app context exists,
    otherwise through the module logger.
    """
    if has_app_context():
        current_app.logger.error(message)
    else:
        logger.error(message)


@dataclass
class SupabaseClients:
    client: Optional[Client] = None  # User client (anon key)
    admin: Optional[Client] = None   # Admin client (service role key)


def init_supabase(app) -> SupabaseClients:
    """
    Initialize Supabase clients with app config.
    Creates two clients:
    - Regular client with anon key (auth: magic links, sessions)
    - Admin client with service role key (record reads/writes filtered by owner)

    Call this from the Flask app factory.
    """
    url = app.config.get("SUPABASE_URL", "")
    anon_key = app.config.get("SUPABASE_ANON_KEY", "")
    service_key = app.config.get("SUPABASE_SERVICE_ROLE_KEY", "")

    clients = SupabaseClients()
    app.extensions[EXTENSION_KEY] = clients

    if not url or not anon_key:
        app.logger.warning("Supabase URL or ANON_KEY not configured. Login and saving will be disabled.")
        return clients

    try:
        clients.client = create_client(url, anon_key)
        app.logger.info("Supabase client initialized successfully")

        if service_key:
            clients.admin = create_client(url, service_key)
            app.logger.info("Supabase admin client initialized successfully")
        else:
            app.logger.warning("SUPABASE_SERVICE_ROLE_KEY not configured. Saving results will be disabled.")

    except Exception as e:
        app.logger.error(f"Failed to initialize Supabase client: {e}")
        clients.client = None
        clients.admin = None

    return clients


def _clients() -> SupabaseClients:
    if not has_app_context():
        return SupabaseClients()
    return current_app.extensions.get(EXTENSION_KEY) or SupabaseClients()


def get_client() -> Optional[Client]:
    """Get the Supabase user client (anon key) for the current app."""
    return _clients().client


def get_admin_client() -> Optional[Client]:
    """Get the Supabase admin client (service role key) for the current app."""
    return _clients().admin


def is_configured() -> bool:
    """Check if Supabase is properly configured."""
    return get_client() is not None


# ============================================================================
# Authentication Helpers
# ============================================================================

def send_magic_link(email: str) -> Dict[str, Any]:
    """
    Send a magic link to the user's email for passwordless login.

    Args:
        email: User's email address

    Returns:
        Dict with 'success' bool and 'message' or 'error'
    """
    client = get_client()
    if not client:
        return {"success": False, "error": "not_configured", "message": "Login is not available right now."}

    try:
        client.auth.sign_in_with_otp({
            "email": email,
            "options": {
                "email_redirect_to": current_app.config.get("SUPABASE_REDIRECT_URL", "http://localhost:5000/auth/callback")
            }
        })

        return {
            "success": True,
            "message": f"Magic link sent to {email}. Please check your inbox."
        }
    except Exception as e:
        error_msg = str(e).lower()
        _safe_log_error(f"Error sending magic link: {e}")

        if "rate limit" in error_msg or "too many requests" in error_msg:
            return {
                "success": False,
                "error": "rate_limit",
                "message": "You've requested too many magic links. Please wait a few minutes and try again."
            }
        elif "invalid" in error_msg and "email" in error_msg:
            return {
                "success": False,
                "error": "invalid_email",
                "message": "The email address is invalid. Please check and try again."
            }
        else:
            return {
                "success": False,
                "error": "unknown",
                "message": "Unable to send magic link. Please try again later."
            }


def verify_session(access_token: str, refresh_token: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Verify a user session token and return user data.

    Args:
        access_token: JWT access token from Supabase Auth
        refresh_token: Optional refresh token (recommended for magic links)

    Returns:
        User dict with id, email, etc. or None if invalid
    """
    client = get_client()
    if not client:
        return None

    try:
        session_response = client.auth.set_session(
            access_token=access_token,
            refresh_token=refresh_token or ""
        )

        if session_response and session_response.user:
            return session_response.user.model_dump()
        return None

    except Exception as e:
        _safe_log_error(f"Error verifying session: {e}")
        return None


def sign_out(access_token: str) -> bool:
    """
    Sign out a user session.

    Returns:
        True if successful, False otherwise
    """
    client = get_client()
    if not client:
        return False

    try:
        if access_token:
            client.auth.set_session(access_token, "")
        client.auth.sign_out()
        return True
    except Exception as e:
        _safe_log_error(f"Error signing out: {e}")
        return False
