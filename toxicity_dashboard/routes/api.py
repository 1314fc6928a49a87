"""
Defines JSON endpoints used by the front end and other clients.

Endpoints:
- POST /api/analyzeComment: scoring proxy. Forwards {text} to Perspective and
  relays its JSON verbatim; on failure returns {error, code, ...} with a 5xx.
- GET  /api/records: the current user's saved analyses
- POST /api/records: save an analysis identified by its signed token
"""

from __future__ import annotations
from flask import Blueprint, request, jsonify, current_app
from ..extensions import get_scorer, get_store
from ..services.analysis_token import InvalidAnalysisToken, load_analysis, sign_analysis
from ..services.moderation_records import ALREADY_SAVED, ModerationRecord
from ..services.perspective import (
    KIND_CONFIG,
    KIND_HTTP,
    KIND_PARSE,
    KIND_TIMEOUT,
    ScoringError,
    extract_toxicity_score,
)
from ..utils.auth import require_auth_json, get_current_user_id
from ..utils.errors import GENERIC_MESSAGES, sanitize_error
from ..utils.validation import ERROR_MESSAGES, validate_text

api_bp = Blueprint("api", __name__)

ANALYSIS_TOKEN_HEADER = "X-Analysis-Token"

# ScoringError kind -> (HTTP status, error code)
_SCORING_FAILURES = {
    KIND_CONFIG: (500, "missing_api_key"),
    KIND_TIMEOUT: (504, "upstream_timeout"),
    KIND_HTTP: (502, "upstream_http_error"),
    KIND_PARSE: (502, "upstream_bad_response"),
}


def _scoring_failure_response(error: ScoringError):
    status, code = _SCORING_FAILURES.get(error.kind, (502, "upstream_unreachable"))
    body = {
        "error": "API key is missing" if error.kind == KIND_CONFIG else GENERIC_MESSAGES["analysis"],
        "code": code,
    }
    if error.status is not None:
        body["upstreamStatus"] = error.status
    if error.code:
        body["upstreamCode"] = error.code
    return jsonify(body), status


@api_bp.route("/analyzeComment", methods=["POST"])
def analyze_comment():
    """
    Scoring proxy.

    Request body (JSON):
        {"text": "..."}

    Returns:
        Perspective's response JSON unchanged (200), plus an X-Analysis-Token
        header when it carries a toxicity score. Failures return
        {"error": str, "code": str, "upstreamStatus"?: int, "upstreamCode"?: str}.
    """
    data = request.get_json(silent=True)
    raw_text = data.get("text") if isinstance(data, dict) else None

    text, error_code = validate_text(raw_text, current_app.config.get("MAX_TEXT_LENGTH", 20000))
    if error_code:
        return jsonify({"error": ERROR_MESSAGES[error_code], "code": error_code}), 400

    try:
        result = get_scorer().analyze(text)
    except ScoringError as e:
        current_app.logger.error(f"Error in Perspective API request: {e}")
        return _scoring_failure_response(e)

    response = jsonify(result)
    try:
        score = extract_toxicity_score(result)
    except ScoringError as e:
        current_app.logger.warning(f"Perspective response without usable toxicity score: {e}")
    else:
        response.headers[ANALYSIS_TOKEN_HEADER] = sign_analysis(text, score)
    return response


@api_bp.route("/records", methods=["GET"])
@require_auth_json
def list_records():
    """
    Saved analyses for the logged-in user, in the order the database returns them.

    Returns:
        {"records": [{"id", "ownerId", "message", "toxicityScore", "createdAt"}]}
    """
    store = get_store()
    if store is None:
        return jsonify({"records": []})

    records = store.list_records(get_current_user_id())
    return jsonify({"records": [r.to_json() for r in records]})


@api_bp.route("/records", methods=["POST"])
@require_auth_json
def create_record():
    """
    Save an analysis for the logged-in user.

    Request body (JSON):
        {"analysisToken": "<value of X-Analysis-Token>"}

    Returns:
        201 with the saved record, 400 for a bad token, 409 if this analysis
        was already saved, 500 if saving fails.
    """
    data = request.get_json(silent=True) or {}

    try:
        analysis = load_analysis(data.get("analysisToken"))
    except InvalidAnalysisToken as e:
        current_app.logger.warning(f"Rejected analysis token: {e}")
        return jsonify({"error": "Invalid or expired analysis token", "code": "invalid_token"}), 400

    store = get_store()
    if store is None:
        current_app.logger.error("Save failed: moderation store is not configured")
        return jsonify({"error": GENERIC_MESSAGES["database"]}), 500

    try:
        record = ModerationRecord(
            owner_id=get_current_user_id(),
            message=analysis.message,
            toxicity_score=analysis.score,
            analysis_id=analysis.analysis_id,
        )
    except ValueError as e:
        return jsonify({"error": sanitize_error(e, "validation", "Record rejected")}), 400

    saved, error = store.save_record(record)
    if error == ALREADY_SAVED:
        return jsonify({"error": ALREADY_SAVED, "code": "already_saved"}), 409
    if error:
        current_app.logger.error(f"Save failed: {error}")
        return jsonify({"error": GENERIC_MESSAGES["database"]}), 500

    return jsonify({"record": (saved or record).to_json()}), 201
