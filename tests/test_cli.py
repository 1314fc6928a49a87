"""
Tests for the Flask CLI commands.
"""

from toxicity_dashboard.services.moderation_records import ModerationRecord
from toxicity_dashboard.services.perspective import KIND_TIMEOUT


class TestScoreText:

    def test_prints_score_and_tier(self, runner, scorer):
        scorer.score_value = 0.42

        result = runner.invoke(args=["score-text", "you are wrong"])

        assert result.exit_code == 0
        assert "Raw Score: 42.0%" in result.output
        assert "Assessment: Medium Toxicity" in result.output

    def test_empty_text(self, runner, scorer):
        result = runner.invoke(args=["score-text", "  "])

        assert result.exit_code == 1
        assert scorer.calls == []

    def test_scoring_failure(self, runner, scorer, scoring_error):
        scorer.error = scoring_error("read timed out", kind=KIND_TIMEOUT)

        result = runner.invoke(args=["score-text", "hello"])

        assert result.exit_code == 1
        assert "Analysis failed" in result.output


class TestUserHistory:

    def test_lists_records(self, runner, store):
        store.save_record(ModerationRecord(owner_id="u1", message="hello world", toxicity_score=0.15))

        result = runner.invoke(args=["user-history", "u1"])

        assert result.exit_code == 0
        assert "Found 1 saved analysis(es)." in result.output
        assert "hello world" in result.output
        assert "Low Toxicity" in result.output

    def test_no_records(self, runner):
        result = runner.invoke(args=["user-history", "nobody"])

        assert "No saved analyses" in result.output
