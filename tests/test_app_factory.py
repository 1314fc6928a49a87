"""
Tests for the application factory, validation helpers, and analysis tokens.
"""

import pytest
from itsdangerous import URLSafeTimedSerializer

from toxicity_dashboard import create_app
from toxicity_dashboard.extensions import get_scorer, get_store
from toxicity_dashboard.services.analysis_token import (
    InvalidAnalysisToken,
    SALT,
    load_analysis,
    sign_analysis,
)
from toxicity_dashboard.services.perspective import PerspectiveClient
from toxicity_dashboard.utils.validation import validate_text


class TestCreateApp:

    def test_injected_collaborators_are_used(self, app, scorer, store):
        with app.app_context():
            assert get_scorer() is scorer
            assert get_store() is store

    def test_default_scorer_reads_config(self):
        app = create_app("toxicity_dashboard.config.TestConfig")

        with app.app_context():
            scorer = get_scorer()
            assert isinstance(scorer, PerspectiveClient)
            assert scorer.api_key == "test-perspective-key"
            assert scorer.timeout == app.config["PERSPECTIVE_TIMEOUT"]
            # no Supabase service key in tests
            assert get_store() is None

    def test_apps_do_not_share_collaborators(self, scorer, store):
        first = create_app("toxicity_dashboard.config.TestConfig", scorer=scorer, store=store)
        second = create_app("toxicity_dashboard.config.TestConfig")

        assert first.extensions["toxicity_scorer"] is scorer
        assert second.extensions["toxicity_scorer"] is not scorer

    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.data == b"OK"

    def test_production_refuses_insecure_config(self, monkeypatch):
        monkeypatch.setattr("toxicity_dashboard.config.ProdConfig.SECRET_KEY", "short")
        monkeypatch.setattr("toxicity_dashboard.config.ProdConfig.PERSPECTIVE_API_KEY", "")

        with pytest.raises(RuntimeError) as exc:
            create_app("toxicity_dashboard.config.ProdConfig")

        assert "SECRET_KEY is too weak" in str(exc.value)
        assert "PERSPECTIVE_API_KEY is not set" in str(exc.value)

    def test_production_starts_with_secure_config(self, monkeypatch):
        monkeypatch.setattr("toxicity_dashboard.config.ProdConfig.SECRET_KEY", "s" * 40)
        monkeypatch.setattr("toxicity_dashboard.config.ProdConfig.PERSPECTIVE_API_KEY", "key")
        monkeypatch.setattr("toxicity_dashboard.config.ProdConfig.PREFERRED_URL_SCHEME", "https")
        monkeypatch.setattr("toxicity_dashboard.config.ProdConfig.SUPABASE_URL", "")
        monkeypatch.setattr("toxicity_dashboard.config.ProdConfig.SUPABASE_ANON_KEY", "")

        app = create_app("toxicity_dashboard.config.ProdConfig")

        assert app.config["SESSION_COOKIE_SECURE"] is True


class TestValidateText:

    def test_accepts_plain_text_unchanged(self):
        assert validate_text("  hello  ") == ("  hello  ", None)

    def test_accepts_empty_string(self):
        assert validate_text("") == ("", None)

    def test_rejects_non_string(self):
        assert validate_text(None)[1] == "invalid_text"
        assert validate_text(123)[1] == "invalid_text"

    def test_length_limit_is_inclusive(self):
        assert validate_text("abc", max_len=3)[1] is None
        assert validate_text("abcd", max_len=3)[1] == "text_too_long"

    def test_rejects_lone_surrogate(self):
        assert validate_text("bad \ud800")[1] == "invalid_encoding"

    def test_accepts_non_ascii(self):
        assert validate_text("¿Qué tal? 你好 👋")[1] is None


class TestAnalysisToken:

    def test_round_trip(self, app):
        with app.app_context():
            analysis = load_analysis(sign_analysis("hello world", 0.15))

        assert (analysis.message, analysis.score) == ("hello world", 0.15)
        assert analysis.analysis_id

    def test_keeps_given_analysis_id(self, app):
        with app.app_context():
            assert load_analysis(sign_analysis("hello", 0.5, "a1")).analysis_id == "a1"

    def test_each_signing_gets_a_new_analysis_id(self, app):
        with app.app_context():
            first = load_analysis(sign_analysis("hello", 0.5))
            second = load_analysis(sign_analysis("hello", 0.5))

        assert first.analysis_id != second.analysis_id

    def test_other_secret_is_rejected(self, app):
        forged = URLSafeTimedSerializer("another-secret", salt=SALT).dumps({"m": "hello", "s": 0.0})

        with app.app_context(), pytest.raises(InvalidAnalysisToken):
            load_analysis(forged)

    def test_malformed_payload_is_rejected(self, app):
        with app.app_context():
            token = URLSafeTimedSerializer(app.secret_key, salt=SALT).dumps({"m": "hello", "s": 0.5})
            with pytest.raises(InvalidAnalysisToken):
                load_analysis(token)

    @pytest.mark.parametrize("token", ["", None])
    def test_missing_token(self, app, token):
        with app.app_context(), pytest.raises(InvalidAnalysisToken):
            load_analysis(token)
