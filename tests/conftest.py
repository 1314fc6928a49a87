# tests/conftest.py
"""
Test configuration and shared fixtures.

Provides the Flask app (TestConfig, CSRF disabled), a fake comment analyzer
and an in-memory record store that are injected through create_app(), plus
sample Perspective payloads.
"""

import os
import sys
import pytest
from unittest.mock import patch

# Add the project root to sys.path
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from toxicity_dashboard.services.moderation_records import ALREADY_SAVED, ModerationRecord  # noqa: E402
from toxicity_dashboard.services.perspective import ScoringError  # noqa: E402


def perspective_response(score):
    """Shape of a comments:analyze response with only TOXICITY requested."""
    return {
        "attributeScores": {
            "TOXICITY": {
                "spanScores": [
                    {"begin": 0, "end": 11, "score": {"value": score, "type": "PROBABILITY"}}
                ],
                "summaryScore": {"value": score, "type": "PROBABILITY"},
            }
        },
        "languages": ["en"],
        "detectedLanguages": ["en"],
    }


class FakeScorer:
    """Stands in for PerspectiveClient. Set `score_value` or `error`."""

    def __init__(self, score_value=0.15, error=None):
        self.score_value = score_value
        self.error = error
        self.calls = []

    def analyze(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return perspective_response(self.score_value)

    def score(self, text):
        return self.analyze(text)["attributeScores"]["TOXICITY"]["summaryScore"]["value"]


class InMemoryStore:
    """Stands in for ModerationStore; same (record, error) / list contract, unique analysis_id."""

    def __init__(self):
        self.records = []
        self.save_error = None
        self.list_calls = 0

    def save_record(self, record):
        if self.save_error:
            return None, self.save_error
        if record.analysis_id and any(r.analysis_id == record.analysis_id for r in self.records):
            return None, ALREADY_SAVED
        saved = ModerationRecord(
            owner_id=record.owner_id,
            message=record.message,
            toxicity_score=record.toxicity_score,
            created_at=record.created_at,
            id=f"rec-{len(self.records) + 1}",
            analysis_id=record.analysis_id,
        )
        self.records.append(saved)
        return saved, None

    def list_records(self, owner_id):
        self.list_calls += 1
        return [r for r in self.records if r.owner_id == owner_id]


@pytest.fixture
def scorer():
    return FakeScorer()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def app(scorer, store):
    """Create and configure a Flask app instance for testing."""
    from toxicity_dashboard import create_app

    app = create_app("toxicity_dashboard.config.TestConfig", scorer=scorer, store=store)
    app.config.update({
        "TESTING": True,
        "WTF_CSRF_ENABLED": False,
        "RATELIMIT_ENABLED": False,
    })

    yield app


@pytest.fixture
def client(app):
    """Create a test client for the Flask app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask app."""
    return app.test_cli_runner()


@pytest.fixture
def logged_in_user():
    """Patch the session lookup so requests run as user u1."""
    user = {"id": "u1", "email": "u1@example.com"}
    with patch("toxicity_dashboard.utils.auth.get_current_user", return_value=user), \
            patch("toxicity_dashboard.routes.auth.get_current_user", return_value=user):
        yield user


@pytest.fixture
def scoring_error():
    """Factory for ScoringError instances."""
    def _make(message="boom", kind="http", status=None, code=None):
        return ScoringError(message, kind, status=status, code=code)
    return _make
