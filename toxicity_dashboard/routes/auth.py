"""
Authentication routes for signup, login, and logout.

Handles:
- Magic link signup/login (passwordless)
- Auth callback from Supabase
- Logout
- Current user info endpoint
"""

from __future__ import annotations
import re
from urllib.parse import urlparse
from flask import Blueprint, render_template, request, redirect, url_for, flash, jsonify, current_app, session
from toxicity_dashboard.services import supabase_client
from toxicity_dashboard.utils.auth import set_session, clear_session, get_current_user, require_auth
from toxicity_dashboard.extensions import limiter
from toxicity_dashboard.utils.errors import log_info


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

# RFC 5322 simplified pattern
_EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def _is_safe_next(next_url: str) -> bool:
    """Only relative paths (no scheme or netloc, so no //evil.com)."""
    parsed = urlparse(next_url)
    return (
        parsed.scheme == ""
        and parsed.netloc == ""
        and next_url.startswith("/")
        and not next_url.startswith("//")
    )


@auth_bp.route("/signup", methods=["GET", "POST"])
@limiter.limit(lambda: current_app.config["SIGNUP_RATE_LIMIT"])
def signup():
    """
    Show signup form or send magic link.

    GET: Display email input form
    POST: Send magic link to email
    """
    if request.method == "GET":
        if get_current_user():
            return redirect(url_for("dashboard.index"))

        return render_template("auth/signup.html", next=request.args.get("next", ""))

    email = request.form.get("email", "").strip().lower()

    if not email:
        flash("Please enter your email address.", "error")
        return redirect(url_for("auth.signup"))

    if len(email) > 320:  # RFC 5321 max email length
        flash("Email address is too long.", "error")
        return redirect(url_for("auth.signup"))

    if not _EMAIL_PATTERN.match(email):
        flash("Please enter a valid email address.", "error")
        return redirect(url_for("auth.signup"))

    result = supabase_client.send_magic_link(email)

    if result["success"]:
        session["pending_email"] = email
        return redirect(url_for("auth.check_email"))

    error_message = result.get("message", "Failed to send magic link. Please try again.")
    current_app.logger.error(f"Failed to send magic link: {result.get('error')} - {error_message}")
    flash(error_message, "error")
    return redirect(url_for("auth.signup"))


@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    """Login page (same as signup for magic link auth)."""
    return signup()


@auth_bp.route("/check-email")
def check_email():
    """Show "check your email" page after magic link sent."""
    email = session.get("pending_email", "your email")
    return render_template("auth/check_email.html", email=email)


@auth_bp.route("/callback")
def callback():
    """
    Handle magic link callback from Supabase.

    Without tokens in the query string, serve callback.html, which moves the
    tokens from the URL hash into the query string and reloads. With tokens,
    verify them and create the session.
    """
    access_token = request.args.get("access_token")
    refresh_token = request.args.get("refresh_token")

    if not access_token:
        return render_template("auth/callback.html")

    user = supabase_client.verify_session(access_token, refresh_token)

    if not user:
        flash("Authentication failed. Please try again.", "error")
        return redirect(url_for("auth.signup"))

    set_session(user, access_token, refresh_token)
    log_info(f"User {user.get('id')} signed in")

    next_url = request.args.get("next", "")
    if next_url and _is_safe_next(next_url):
        return redirect(next_url)

    flash("Welcome back!", "success")
    return redirect(url_for("dashboard.index"))


@auth_bp.route("/logout")
@require_auth
def logout():
    """Log out current user and clear session."""
    access_token = session.get("access_token")

    if access_token:
        supabase_client.sign_out(access_token)

    clear_session()
    flash("You've been logged out successfully.", "info")

    return redirect(url_for("dashboard.index"))


@auth_bp.route("/me")
@require_auth
def me():
    """Current user info as JSON (for client-side use)."""
    user = get_current_user()
    if not user:
        return jsonify({"error": "Not authenticated"}), 401

    return jsonify({
        "user": {
            "id": user.get("id"),
            "email": user.get("email"),
        }
    })
