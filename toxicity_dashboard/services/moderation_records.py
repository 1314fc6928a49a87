"""
Moderation record persistence.

Saves message/score pairs to the `moderation_results` table and reads them
back per owner. Records are append-only: this module never updates or deletes.

Table columns: id (generated), owner_id, message, toxicity_score, created_at,
analysis_id (unique, so one analysis is stored at most once).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Tuple
import logging
from flask import current_app, has_app_context
from supabase import Client

from .toxicity import Tier, toxicity_tier, format_score

logger = logging.getLogger(__name__)

ALREADY_SAVED = "Analysis already saved"

# Postgres unique_violation
_UNIQUE_VIOLATION = "23505"


def _safe_log_error(message: str) -> None:
    """Safely log an error, handling cases where no app context exists."""
    if has_app_context():
        current_app.logger.error(message)
    else:
        logger.error(message)


def _parse_timestamp(value: Any) -> datetime:
    """Postgres timestamptz as returned by PostgREST; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ModerationRecord:
    """One saved analysis. toxicity_score is bounded to [0, 1]; owner_id is required."""

    owner_id: str
    message: str
    toxicity_score: float
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: Optional[str] = None
    analysis_id: Optional[str] = None

    def __post_init__(self):
        if not self.owner_id:
            raise ValueError("owner_id is required")
        if isinstance(self.toxicity_score, bool) or not isinstance(self.toxicity_score, (int, float)):
            raise ValueError(f"toxicity_score must be a number, got {self.toxicity_score!r}")
        if not 0.0 <= self.toxicity_score <= 1.0:
            raise ValueError(f"toxicity_score must be within [0, 1], got {self.toxicity_score}")

    def to_row(self) -> Dict[str, Any]:
        row = {
            "owner_id": self.owner_id,
            "message": self.message,
            "toxicity_score": float(self.toxicity_score),
            "created_at": self.created_at.isoformat(),
        }
        if self.analysis_id:
            row["analysis_id"] = self.analysis_id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ModerationRecord":
        return cls(
            owner_id=row["owner_id"],
            message=row.get("message") or "",
            toxicity_score=float(row["toxicity_score"]),
            created_at=_parse_timestamp(row["created_at"]),
            id=str(row["id"]) if row.get("id") is not None else None,
            analysis_id=row.get("analysis_id"),
        )

    def to_json(self) -> Dict[str, Any]:
        """camelCase shape used by the records API."""
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "message": self.message,
            "toxicityScore": self.toxicity_score,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class HistoryEntry:
    """Read-only display projection of a ModerationRecord."""

    message: str
    toxicity_score: float
    timestamp: str

    @property
    def score_display(self) -> str:
        return format_score(self.toxicity_score)

    @property
    def tier(self) -> Tier:
        return toxicity_tier(self.toxicity_score)


def to_history_entry(record: ModerationRecord) -> HistoryEntry:
    """Project a record for display, formatting the timestamp in local time and locale."""
    return HistoryEntry(
        message=record.message,
        toxicity_score=record.toxicity_score,
        timestamp=record.created_at.astimezone().strftime("%x %X"),
    )


class ModerationStore:
    """Append-only access to moderation records, scoped by owner."""

    def __init__(self, client: Client, table: str = "moderation_results"):
        self.client = client
        self.table = table

    def save_record(self, record: ModerationRecord) -> Tuple[Optional[ModerationRecord], Optional[str]]:
        """
        Insert one record.

        Returns:
            (saved_record, error_message). error_message is ALREADY_SAVED when a
            record with the same analysis_id exists.
        """
        try:
            response = self.client.table(self.table).insert(record.to_row()).execute()
        except Exception as e:
            if getattr(e, "code", None) == _UNIQUE_VIOLATION:
                _safe_log_error(f"Analysis {record.analysis_id} already saved for {record.owner_id}")
                return None, ALREADY_SAVED
            _safe_log_error(f"Error saving moderation record for {record.owner_id}: {e}")
            return None, f"Error saving record: {str(e)}"

        if not response.data:
            return None, "Failed to save record"

        # The row is committed at this point; an unreadable echo is not a failed save.
        try:
            return ModerationRecord.from_row(response.data[0]), None
        except (KeyError, TypeError, ValueError) as e:
            _safe_log_error(f"Saved moderation record for {record.owner_id} but could not read it back: {e}")
            return record, None

    def list_records(self, owner_id: str) -> List[ModerationRecord]:
        """
        All records owned by owner_id, in the order the database returns them.

        Returns an empty list on failure (the error is logged). Rows that
        cannot be read are skipped and logged.
        """
        try:
            response = self.client.table(self.table) \
                .select("*") \
                .eq("owner_id", owner_id) \
                .execute()
        except Exception as e:
            _safe_log_error(f"Error fetching moderation records for {owner_id}: {e}")
            return []

        records = []
        for row in response.data or []:
            try:
                records.append(ModerationRecord.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                _safe_log_error(f"Skipping unreadable moderation record {row.get('id')}: {e}")
        return records
