"""
Application factory and global configuration.

Creates the Flask app, applies security headers (CSP), configures CSRF and
rate limiting, attaches the scoring client and record store, registers
blueprints and CLI commands. Startup/config concerns live here; domain logic
lives in services/.

Collaborators can be injected (tests pass fakes):

    create_app(scorer=FakeScorer(), store=FakeStore())
"""

from __future__ import annotations
import os
from typing import Optional
from flask import Flask, Response
from dotenv import load_dotenv
from .extensions import limiter, csrf, SCORER_KEY, STORE_KEY
from .routes.api import api_bp, analyze_comment
from .routes.web import web_bp
from .routes.auth import auth_bp
from .routes.dashboard import dashboard_bp
from .services import supabase_client
from .services.moderation_records import ModerationStore
from .services.perspective import PerspectiveClient
from .utils import auth
from .cli import register_cli

DEFAULT_CONFIG = "toxicity_dashboard.config.ProdConfig"


def _validate_production_security(app: Flask, cfg_path: str) -> None:
    """
    Validate critical settings in production environments.

    Raises RuntimeError if production requirements are not met, so the app
    never starts with an insecure configuration.

    Checks:
    - SESSION_COOKIE_SECURE must be True (cookies only over HTTPS)
    - SECRET_KEY must be set and strong (>= 32 characters)
    - DEBUG must be False
    - PREFERRED_URL_SCHEME should be "https"
    - PERSPECTIVE_API_KEY must be set
    """
    is_production = "ProdConfig" in cfg_path
    is_test = app.config.get("TESTING", False)

    if not is_production or is_test:
        return

    errors = []

    if not app.config.get("SESSION_COOKIE_SECURE", False):
        errors.append(
            "SESSION_COOKIE_SECURE must be True in production. "
            "Cookies must only be sent over HTTPS to prevent session hijacking."
        )

    secret_key = app.config.get("SECRET_KEY", "")
    if not secret_key:
        errors.append(
            "SECRET_KEY is not set. Set FLASK_SECRET_KEY environment variable. "
            "Generate with: python -c 'import secrets; print(secrets.token_hex(32))'"
        )
    elif len(secret_key) < 32:
        errors.append(
            f"SECRET_KEY is too weak ({len(secret_key)} chars). "
            "Must be at least 32 characters for production security."
        )

    if app.config.get("DEBUG", False):
        errors.append("DEBUG must be False in production.")

    if app.config.get("PREFERRED_URL_SCHEME", "http") != "https":
        errors.append(
            "PREFERRED_URL_SCHEME should be 'https' in production. "
            "Set PREFERRED_URL_SCHEME=https environment variable."
        )

    if not app.config.get("PERSPECTIVE_API_KEY"):
        errors.append("PERSPECTIVE_API_KEY is not set. Comment analysis cannot work without it.")

    if errors:
        error_msg = "\n\n[ERROR] PRODUCTION SECURITY VALIDATION FAILED:\n\n" + "\n\n".join(f"  * {err}" for err in errors)
        error_msg += "\n\n[WARNING] The application will not start until these issues are resolved.\n"
        raise RuntimeError(error_msg)

    app.logger.info("[OK] Production security validation passed")


def create_app(
    config_object: Optional[str] = None,
    scorer=None,
    store: Optional[ModerationStore] = None,
) -> Flask:
    # Load .env early (for local dev)
    load_dotenv(override=True)

    app = Flask(
        __name__,
        static_folder="static",
        template_folder="templates",
    )

    # Explicit argument, then APP_CONFIG, then production
    cfg_path = config_object or os.getenv("APP_CONFIG", DEFAULT_CONFIG)
    try:
        app.config.from_object(cfg_path)
    except (ImportError, AttributeError) as e:
        app.logger.warning(f"Could not load config object {cfg_path}: {e}")

    _validate_production_security(app, cfg_path)

    limiter.init_app(app)
    if not app.config.get("RATELIMIT_ENABLED", True):
        limiter.enabled = False

    if not app.secret_key:
        app.secret_key = app.config.get("SECRET_KEY", "")

    csrf.init_app(app)
    # Stateless proxy; callers are not browser sessions
    csrf.exempt(analyze_comment)

    # Supabase: identity always, records only with the service role key
    clients = supabase_client.init_supabase(app)
    if store is None and clients.admin is not None:
        store = ModerationStore(clients.admin, app.config.get("MODERATION_TABLE", "moderation_results"))
    app.extensions[STORE_KEY] = store

    if scorer is None:
        scorer = PerspectiveClient.from_config(app.config)
        if not scorer.is_configured:
            app.logger.warning("PERSPECTIVE_API_KEY not configured. Comment analysis will fail.")
    app.extensions[SCORER_KEY] = scorer

    app.context_processor(auth.inject_auth_context)

    supabase_domain = app.config.get("SUPABASE_URL", "").replace("https://", "").replace("http://", "")
    connect_src = "'self'" + (f" https://{supabase_domain}" if supabase_domain else "")

    csp = (
        "default-src 'self'; "
        "script-src 'self'; "
        "style-src 'self'; "
        "img-src 'self' data:; "
        f"connect-src {connect_src}; "
        "object-src 'none'; "
        "base-uri 'self'; "
        "frame-ancestors 'none'; "
        "form-action 'self'"
    )

    @app.after_request
    def apply_security_headers(resp: Response) -> Response:
        resp.headers["Content-Security-Policy"] = csp
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        resp.headers["X-Frame-Options"] = "DENY"
        return resp

    # Blueprints
    app.register_blueprint(web_bp)
    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)

    register_cli(app)

    return app
