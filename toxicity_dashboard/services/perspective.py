"""
Perspective comment analyzer client.

Functions:
- build_analyze_request(text): request envelope asking for the TOXICITY attribute.
- PerspectiveClient.analyze(text): one outbound POST, returns the API's JSON verbatim.
- extract_toxicity_score(result): reads attributeScores.TOXICITY.summaryScore.value.

Notes:
- The API key is supplied by configuration (PERSPECTIVE_API_KEY); nothing is
  embedded in source.
- One call per analysis. No retries; a timeout is always passed to requests.
- Every failure is raised as ScoringError carrying a kind plus the upstream
  HTTP status and error code when the API supplied them, so callers can show a
  specific message while logging the full cause.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import requests

ATTRIBUTE = "TOXICITY"

# ScoringError kinds
KIND_CONFIG = "configuration"
KIND_TIMEOUT = "timeout"
KIND_NETWORK = "network"
KIND_HTTP = "http"
KIND_PARSE = "parse"


class ScoringError(Exception):
    """Raised when the comment analyzer cannot produce a toxicity score."""

    def __init__(
        self,
        message: str,
        kind: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status = status
        self.code = code

    def __str__(self) -> str:
        parts = [self.message]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.code:
            parts.append(f"code={self.code}")
        return " ".join(parts)


def build_analyze_request(text: str, languages: Optional[List[str]] = None) -> Dict[str, Any]:
    """Request body for comments:analyze with a single requested attribute."""
    return {
        "comment": {"text": text},
        "languages": list(languages or ["en"]),
        "requestedAttributes": {ATTRIBUTE: {}},
    }


def _upstream_error_code(payload: Any) -> Optional[str]:
    """
    Pull the most specific error code out of a Google API error body:
    details[].errorType (e.g. LANGUAGE_NOT_SUPPORTED_BY_ATTRIBUTE) first,
    then error.status (e.g. INVALID_ARGUMENT).
    """
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if not isinstance(error, dict):
        return None
    for detail in error.get("details") or []:
        if isinstance(detail, dict) and detail.get("errorType"):
            return str(detail["errorType"])
    status = error.get("status")
    return str(status) if status else None


def extract_toxicity_score(result: Any) -> float:
    """
    Read the TOXICITY summary score from an analyzer response.

    Raises ScoringError(kind="parse") if the field is missing, not numeric,
    or outside [0, 1].
    """
    try:
        value = result["attributeScores"][ATTRIBUTE]["summaryScore"]["value"]
    except (KeyError, TypeError) as e:
        raise ScoringError("Response has no toxicity score", KIND_PARSE) from e

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScoringError(f"Toxicity score is not numeric: {value!r}", KIND_PARSE)
    score = float(value)
    if not 0.0 <= score <= 1.0:
        raise ScoringError(f"Toxicity score out of range: {score}", KIND_PARSE)
    return score


class PerspectiveClient:
    """Thin wrapper around the comments:analyze endpoint."""

    def __init__(
        self,
        api_key: str,
        url: str,
        timeout: float = 10.0,
        languages: Optional[List[str]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.languages = list(languages or ["en"])
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "PerspectiveClient":
        return cls(
            api_key=config.get("PERSPECTIVE_API_KEY", ""),
            url=config.get("PERSPECTIVE_API_URL", ""),
            timeout=config.get("PERSPECTIVE_TIMEOUT", 10.0),
            languages=config.get("PERSPECTIVE_LANGUAGES", ["en"]),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def analyze(self, text: str) -> Dict[str, Any]:
        """
        Send one analysis request and return the response JSON unchanged.

        Raises:
            ScoringError: missing key, timeout, connection failure, non-2xx
                status, or a body that is not a JSON object.
        """
        if not self.api_key:
            raise ScoringError("API key is missing", KIND_CONFIG)

        try:
            r = self.session.post(
                self.url,
                params={"key": self.api_key},
                json=build_analyze_request(text, self.languages),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise ScoringError(f"Perspective request timed out: {e}", KIND_TIMEOUT) from e
        except requests.RequestException as e:
            raise ScoringError(f"Perspective request failed: {e}", KIND_NETWORK) from e

        try:
            payload = r.json()
        except ValueError:
            payload = None

        if not r.ok:
            raise ScoringError(
                "Perspective returned an error",
                KIND_HTTP,
                status=r.status_code,
                code=_upstream_error_code(payload),
            )

        if not isinstance(payload, dict):
            raise ScoringError("Perspective response is not a JSON object", KIND_PARSE, status=r.status_code)

        return payload

    def score(self, text: str) -> float:
        """analyze() followed by extract_toxicity_score()."""
        return extract_toxicity_score(self.analyze(text))
