"""
Authentication utilities and decorators for route protection.

Provides:
- @require_auth: Decorator to require an authenticated user (HTML routes)
- @require_auth_json: Same check for JSON routes, answering 401 instead of redirecting
- @optional_auth: Loads the user if present without enforcing login
- Session management helpers
"""

from __future__ import annotations
from functools import wraps
from typing import Optional, Dict, Any
from flask import session, redirect, url_for, request, flash, g, jsonify
from toxicity_dashboard.services import supabase_client


# ============================================================================
# Session Management
# ============================================================================

SESSION_USER_KEY = "user"
SESSION_ACCESS_TOKEN_KEY = "access_token"
SESSION_REFRESH_TOKEN_KEY = "refresh_token"


def get_current_user() -> Optional[Dict[str, Any]]:
    """
    Get currently logged-in user from session.

    Returns:
        User dict with id, email, etc. or None if not logged in
    """
    if hasattr(g, 'user'):
        return g.user

    access_token = session.get(SESSION_ACCESS_TOKEN_KEY)
    refresh_token = session.get(SESSION_REFRESH_TOKEN_KEY)

    if not access_token:
        g.user = None
        return None

    # Verify token with Supabase (pass both tokens)
    user = supabase_client.verify_session(access_token, refresh_token)
    if not user:
        # Token invalid/expired, clear session
        clear_session()
        g.user = None
        return None

    g.user = user
    return user


def get_current_user_id() -> Optional[str]:
    """
    Get current user's ID.

    Returns:
        User UUID or None if not logged in
    """
    user = get_current_user()
    return user.get("id") if user else None


def set_session(user: Dict[str, Any], access_token: str, refresh_token: Optional[str] = None) -> None:
    """
    Store user session data.

    Security: Regenerates session ID to prevent session fixation attacks.
    """
    session.clear()
    session.modified = True

    session[SESSION_USER_KEY] = {
        "id": user.get("id"),
        "email": user.get("email"),
    }
    session[SESSION_ACCESS_TOKEN_KEY] = access_token
    if refresh_token:
        session[SESSION_REFRESH_TOKEN_KEY] = refresh_token
    session.permanent = True


def clear_session() -> None:
    """Clear user session data."""
    session.pop(SESSION_USER_KEY, None)
    session.pop(SESSION_ACCESS_TOKEN_KEY, None)
    session.pop(SESSION_REFRESH_TOKEN_KEY, None)


def is_authenticated() -> bool:
    """Check if user is currently authenticated."""
    return get_current_user() is not None


# ============================================================================
# Decorators
# ============================================================================

def require_auth(f):
    """
    Decorator to require authentication for a route.

    If user not logged in, redirects to signup page with 'next' parameter.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            flash("Please sign in to access this page.", "info")
            return redirect(url_for("auth.signup", next=request.path))

        return f(*args, **kwargs)

    return decorated_function


def require_auth_json(f):
    """Like require_auth, but for JSON endpoints: 401 with an error body."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return jsonify({"error": "Not authenticated"}), 401

        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """
    Decorator to mark a route as optionally authenticated.

    This doesn't enforce auth, but loads user if available.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        get_current_user()
        return f(*args, **kwargs)

    return decorated_function


# ============================================================================
# Helper Functions for Templates
# ============================================================================

def inject_auth_context():
    """
    Context processor to inject auth data into all templates.

    Makes these available in all templates:
        - current_user: User dict or None
        - is_authenticated: Boolean
    """
    user = get_current_user()
    return {
        "current_user": user,
        "is_authenticated": user is not None,
    }
