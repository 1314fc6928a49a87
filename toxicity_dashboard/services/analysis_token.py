"""
Signed analysis tokens.

After a successful analysis the server signs the (message, score) pair and
hands the token to the client. Saving requires a valid token, so a stored
toxicity_score is always one the scoring service returned for that exact
message. Each token also carries an analysis id; the records table keeps it
unique, so replaying a token cannot store the same analysis twice.
"""

from __future__ import annotations
import uuid
from typing import NamedTuple, Optional
from flask import current_app
from itsdangerous import BadSignature, URLSafeTimedSerializer

SALT = "analysis"
MAX_AGE_SECONDS = 24 * 60 * 60


class InvalidAnalysisToken(Exception):
    """Token is missing, tampered with, expired, or carries a malformed payload."""


class Analysis(NamedTuple):
    message: str
    score: float
    analysis_id: str


def new_analysis_id() -> str:
    return uuid.uuid4().hex


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.secret_key, salt=SALT)


def sign_analysis(message: str, score: float, analysis_id: Optional[str] = None) -> str:
    return _serializer().dumps({"m": message, "s": score, "n": analysis_id or new_analysis_id()})


def load_analysis(token: str) -> Analysis:
    """
    Returns the Analysis signed into a token by sign_analysis().

    Raises:
        InvalidAnalysisToken
    """
    if not token or not isinstance(token, str):
        raise InvalidAnalysisToken("Missing analysis token")
    try:
        payload = _serializer().loads(token, max_age=MAX_AGE_SECONDS)
    except BadSignature as e:
        # SignatureExpired is a BadSignature subclass
        raise InvalidAnalysisToken(str(e)) from e

    if not isinstance(payload, dict):
        raise InvalidAnalysisToken("Malformed analysis token")
    message, score, analysis_id = payload.get("m"), payload.get("s"), payload.get("n")
    if (
        not isinstance(message, str)
        or isinstance(score, bool)
        or not isinstance(score, (int, float))
        or not isinstance(analysis_id, str)
        or not analysis_id
    ):
        raise InvalidAnalysisToken("Malformed analysis token")
    return Analysis(message, float(score), analysis_id)
