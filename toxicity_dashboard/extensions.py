"""
Defines application-wide extensions. Keeps creation/import separate from
initialization to avoid circular imports.

Provides Flask-Limiter, Flask-WTF CSRF protection, and accessors for the
collaborators that create_app() attaches to `app.extensions` (the scoring
client and the moderation record store).
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Optional
from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect

if TYPE_CHECKING:
    from .services.perspective import PerspectiveClient
    from .services.moderation_records import ModerationStore

# Created here; initialized with app in create_app()
limiter = Limiter(key_func=get_remote_address)
csrf = CSRFProtect()

SCORER_KEY = "toxicity_scorer"
STORE_KEY = "moderation_store"


def get_scorer() -> "PerspectiveClient":
    """Scoring client injected into the current app."""
    return current_app.extensions[SCORER_KEY]


def get_store() -> Optional["ModerationStore"]:
    """Record store injected into the current app, or None when Supabase is not configured."""
    return current_app.extensions.get(STORE_KEY)
