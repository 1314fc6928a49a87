"""
Top-level web routes: landing redirect and health check.
"""

from flask import Blueprint, redirect, url_for

web_bp = Blueprint("web", __name__)


@web_bp.route("/")
def index():
    return redirect(url_for("dashboard.index"))


@web_bp.route("/healthz")
def healthz():
    """Simple health endpoint to verify the server responds."""
    return "OK", 200
