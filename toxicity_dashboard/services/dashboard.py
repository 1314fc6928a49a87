"""
Dashboard controller.

Owns the analyze -> display -> save -> history flow independent of Flask, so
routes, the CLI and tests drive the same logic. Collaborators are passed in:

- scorer: anything with score(text) -> float that raises ScoringError
- store:  a ModerationStore (or None when persistence is not configured)
- owner_id: the logged-in user's id, or None

State is one of the dataclasses below. Only Analyzed/Saving/Saved carry a
score and Error never does, so a score and an error are never shown together.

Every analyze/save takes a ticket from a monotonic sequence; a result is only
applied if its ticket is still the latest and the controller has not been
closed.
"""

from __future__ import annotations
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .analysis_token import new_analysis_id
from .moderation_records import ALREADY_SAVED, HistoryEntry, ModerationRecord, ModerationStore, to_history_entry
from .perspective import (
    KIND_CONFIG,
    KIND_HTTP,
    KIND_TIMEOUT,
    ScoringError,
)
from .toxicity import Tier, format_score, toxicity_tier

logger = logging.getLogger(__name__)

# Error kinds
ERROR_VALIDATION = "validation"
ERROR_UPSTREAM = "upstream"
ERROR_PERSISTENCE = "persistence"

EMPTY_MESSAGE = "Please enter some text to analyze."
LOGIN_REQUIRED = "You must be logged in to save results."
NOTHING_TO_SAVE = "Analyze a message before saving."
ANALYSIS_FAILED = "Analysis failed. Please try again."
SAVE_FAILED = "Failed to save content. Please try again."
SAVE_SUCCEEDED = "Content saved successfully!"


# ============================================================================
# State
# ============================================================================

@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class Analyzing:
    message: str
    name = "analyzing"


@dataclass(frozen=True)
class _Scored:
    message: str
    score: float
    # Identifies this analysis so it is stored at most once
    analysis_id: Optional[str] = field(default=None, compare=False)

    @property
    def score_display(self) -> str:
        return format_score(self.score)

    @property
    def tier(self) -> Tier:
        return toxicity_tier(self.score)


@dataclass(frozen=True)
class Analyzed(_Scored):
    name = "analyzed"


@dataclass(frozen=True)
class Saving(_Scored):
    name = "saving"


@dataclass(frozen=True)
class Saved(_Scored):
    name = "saved"
    notice = SAVE_SUCCEEDED


@dataclass(frozen=True)
class Error:
    reason: str
    kind: str
    name = "error"


DashboardState = Union[Idle, Analyzing, Analyzed, Saving, Saved, Error]


def describe_scoring_error(error: ScoringError) -> str:
    """User-facing message for a scoring failure, specific where the cause is known."""
    if error.kind == KIND_TIMEOUT:
        return "The analysis service timed out. Please try again."
    if error.kind == KIND_CONFIG:
        return "Analysis is not available right now. Please try again later."
    if error.kind == KIND_HTTP:
        if error.status == 429:
            return "The analysis service is busy. Please wait a moment and try again."
        if error.code and error.code.startswith("LANGUAGE_NOT_SUPPORTED"):
            return "This language is not supported for toxicity analysis."
        if error.status == 400:
            return "The analysis service could not process this text. Please edit it and try again."
    return ANALYSIS_FAILED


class RequestSequence:
    """Monotonic tickets; only the most recently issued ticket is current."""

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._latest = next(self._counter)
            return self._latest

    def is_latest(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._latest


# ============================================================================
# Controller
# ============================================================================

class DashboardController:

    def __init__(
        self,
        scorer,
        store: Optional[ModerationStore],
        owner_id: Optional[str] = None,
        state: Optional[DashboardState] = None,
    ):
        self.scorer = scorer
        self.store = store
        self.owner_id = owner_id
        self.state: DashboardState = state or Idle()
        # None until the first fetch completes
        self.history: Optional[List[HistoryEntry]] = None
        self._sequence = RequestSequence()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Tear down: results still in flight are discarded and no new calls are made."""
        self._closed = True

    def _apply(self, ticket: int, state: DashboardState) -> bool:
        if self._closed or not self._sequence.is_latest(ticket):
            logger.debug(f"Discarding stale dashboard result {state.name} (ticket {ticket})")
            return False
        self.state = state
        return True

    def handle_analyze(self, message: str) -> DashboardState:
        """
        Score `message` and move to Analyzed, or to Error on empty input or
        scorer failure. Empty input never reaches the scorer.
        """
        if self._closed:
            return self.state

        if not (message or "").strip():
            self._sequence.next()  # supersede anything still in flight
            self.state = Error(EMPTY_MESSAGE, ERROR_VALIDATION)
            return self.state

        ticket = self._sequence.next()
        self.state = Analyzing(message)

        try:
            score = self.scorer.score(message)
        except ScoringError as e:
            logger.error(f"Toxicity analysis failed: {e}")
            self._apply(ticket, Error(describe_scoring_error(e), ERROR_UPSTREAM))
        else:
            self._apply(ticket, Analyzed(message, score, new_analysis_id()))
        return self.state

    def save(self) -> DashboardState:
        """
        Persist the current analysis for the logged-in owner, then refresh history.

        Requires an owner and an Analyzed state; otherwise sets a validation
        error and writes nothing. Saving an already Saved analysis is a no-op,
        as is a store that already holds this analysis_id.
        """
        if self._closed:
            return self.state

        if not self.owner_id:
            self.state = Error(LOGIN_REQUIRED, ERROR_VALIDATION)
            return self.state

        current = self.state
        if isinstance(current, Saved):
            return current
        if not isinstance(current, Analyzed):
            self.state = Error(NOTHING_TO_SAVE, ERROR_VALIDATION)
            return self.state

        if self.store is None:
            logger.error("Save failed: moderation store is not configured")
            self.state = Error(SAVE_FAILED, ERROR_PERSISTENCE)
            return self.state

        ticket = self._sequence.next()
        self.state = Saving(current.message, current.score, current.analysis_id)

        record = ModerationRecord(
            owner_id=self.owner_id,
            message=current.message,
            toxicity_score=current.score,
            analysis_id=current.analysis_id,
        )
        _, error = self.store.save_record(record)

        if error and error != ALREADY_SAVED:
            logger.error(f"Save failed: {error}")
            self._apply(ticket, Error(SAVE_FAILED, ERROR_PERSISTENCE))
            return self.state

        if self._apply(ticket, Saved(current.message, current.score, current.analysis_id)):
            self.fetch_user_history()
        return self.state

    def fetch_user_history(self) -> List[HistoryEntry]:
        """Replace the history list with the owner's records, in store order."""
        if self._closed:
            return self.history or []

        if not self.owner_id or self.store is None:
            self.history = []
            return self.history

        records = self.store.list_records(self.owner_id)
        if self._closed:
            return self.history or []

        self.history = [to_history_entry(record) for record in records]
        return self.history
