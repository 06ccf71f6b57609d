"""Service for persisting finished attempts and reading aggregate statistics."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from PySide6.QtCore import QSettings

from trivia_quiz.constants.about import APP_NAME, APP_ORGANIZATION
from trivia_quiz.constants.storage_constants import HISTORY_STORAGE_KEY
from trivia_quiz.core.errors import RemoteServiceError, StorageReadError, WriteError
from trivia_quiz.core.models import AggregateStats, AttemptRecord
from trivia_quiz.remote.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class AttemptStore(Protocol):
    """Backing store for attempt records."""

    name: str

    def append(self, score: int, recorded_at: datetime, duration_seconds: float | None) -> AttemptRecord: ...

    def history(self, limit: int | None = None) -> list[AttemptRecord]: ...

    def aggregate(self) -> AggregateStats: ...


class LocalAttemptStore:
    """Attempts kept on this device under a single settings key as a JSON array."""

    name = "local"

    def __init__(self, settings: QSettings | None = None, key: str = HISTORY_STORAGE_KEY) -> None:
        if settings is None:
            settings = QSettings(APP_ORGANIZATION, APP_NAME)
        self._settings = settings
        self._key = key

    @classmethod
    def from_file(cls, path: Path) -> "LocalAttemptStore":
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(QSettings(str(path), QSettings.Format.IniFormat))

    def append(self, score: int, recorded_at: datetime, duration_seconds: float | None) -> AttemptRecord:
        try:
            entries = self._read_entries()
        except StorageReadError as exc:
            raise WriteError(f"Existing history is unreadable: {exc}") from exc
        entries.append(
            {
                "score": score,
                "recorded_at": recorded_at.isoformat(),
                "timestamp": int(recorded_at.timestamp() * 1000),
                "duration_seconds": duration_seconds,
            }
        )
        self._settings.setValue(self._key, json.dumps(entries))
        self._settings.sync()
        if self._settings.status() != QSettings.Status.NoError:
            raise WriteError(f"Local history could not be written ({self._settings.status().name}).")
        return AttemptRecord(score=score, recorded_at=recorded_at, duration_seconds=duration_seconds)

    def history(self, limit: int | None = None) -> list[AttemptRecord]:
        records = [_record_from_entry(entry) for entry in self._read_entries()]
        records.sort(key=lambda record: record.recorded_at, reverse=True)
        return records if limit is None else records[:limit]

    def aggregate(self) -> AggregateStats:
        return AggregateStats.from_scores(int(entry["score"]) for entry in self._read_entries())

    def clear(self) -> None:
        self._settings.remove(self._key)
        self._settings.sync()

    def _read_entries(self) -> list[dict[str, Any]]:
        raw = self._settings.value(self._key)
        if raw in (None, ""):
            return []
        try:
            entries = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise StorageReadError(f"Stored history is not valid JSON: {exc}") from exc
        if not isinstance(entries, list) or not all(
            isinstance(entry, dict) and isinstance(entry.get("score"), int) for entry in entries
        ):
            raise StorageReadError("Stored history has an unexpected shape.")
        return entries


class RemoteAttemptStore:
    """Attempts stored in the shared Supabase ``attempts`` table."""

    name = "remote"

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    def probe(self) -> bool:
        return self._client.probe()

    def append(self, score: int, recorded_at: datetime, duration_seconds: float | None) -> AttemptRecord:
        row = _expect_row(self._client.insert_attempt(score, duration_seconds), "attempt insert")
        try:
            stored_score = int(row["score"]) if row.get("score") is not None else score
        except (TypeError, ValueError) as exc:
            raise RemoteServiceError(f"Unexpected attempt row: {row!r}") from exc
        logger.info("Attempt stored remotely with id %s", row.get("id"))
        created_at = _parse_timestamp(row.get("created_at")) or recorded_at
        return AttemptRecord(score=stored_score, recorded_at=created_at, duration_seconds=duration_seconds)

    def history(self, limit: int | None = None) -> list[AttemptRecord]:
        records = []
        for row in self._client.fetch_attempts(limit):
            row = _expect_row(row, "attempt history")
            recorded_at = _parse_timestamp(row.get("created_at"))
            if recorded_at is None:
                continue
            try:
                records.append(
                    AttemptRecord(
                        score=int(row.get("score") or 0),
                        recorded_at=recorded_at,
                        duration_seconds=row.get("total_time"),
                    )
                )
            except (TypeError, ValueError) as exc:
                raise RemoteServiceError(f"Unexpected attempt row: {row!r}") from exc
        return records

    def aggregate(self) -> AggregateStats:
        row = _expect_row(self._client.fetch_global_stats(), "statistics")
        try:
            return AggregateStats(
                count=int(row.get("total_attempts") or 0),
                max_score=int(row.get("max_score") or 0),
                average=float(row.get("avg_score") or 0.0),
                min_score=int(row.get("min_score") or 0),
            )
        except (TypeError, ValueError) as exc:
            raise RemoteServiceError(f"Unexpected statistics payload: {row!r}") from exc


class PersistenceGateway:
    """Records attempts on the preferred backing, falling back to this device."""

    def __init__(self, local: LocalAttemptStore, remote: RemoteAttemptStore | None = None) -> None:
        self._local = local
        self._remote = remote
        self._use_remote: bool | None = None

    @property
    def backing(self) -> str:
        return self.select_backing()

    def select_backing(self) -> str:
        """Probe the remote store once and remember the outcome."""
        if self._use_remote is None:
            self._use_remote = self._remote is not None and self._remote.probe()
            logger.info("Attempts will be stored on the %s backing", self._active_name())
        return self._active_name()

    def record_attempt(self, score: int, duration_seconds: float | None = None) -> AttemptRecord:
        """Store one attempt; a failed remote write moves the gateway to local for good.

        Statistics and history then come from the store that holds the attempt.
        """
        if score < 0:
            raise ValueError("Score cannot be negative.")
        recorded_at = datetime.now(timezone.utc)
        if self._remote_selected():
            try:
                return self._remote.append(score, recorded_at, duration_seconds)
            except RemoteServiceError as exc:
                logger.warning("Remote attempt write failed, storing locally: %s", exc)
                self._use_remote = False
        record = self._local.append(score, recorded_at, duration_seconds)
        logger.info("Attempt stored locally (score %d)", score)
        return record

    def stats(self) -> AggregateStats:
        """Aggregate statistics; zero-valued when nothing can be read."""
        if self._remote_selected():
            try:
                return self._remote.aggregate()
            except RemoteServiceError as exc:
                logger.warning("Remote statistics unavailable, using local history: %s", exc)
        try:
            return self._local.aggregate()
        except StorageReadError as exc:
            logger.warning("Local statistics unavailable: %s", exc)
            return AggregateStats()

    def history(self, limit: int | None = None) -> list[AttemptRecord]:
        """Newest-first attempts from the active backing."""
        if self._remote_selected():
            try:
                return self._remote.history(limit)
            except RemoteServiceError as exc:
                logger.warning("Remote history unavailable, using local history: %s", exc)
        try:
            return self._local.history(limit)
        except StorageReadError as exc:
            logger.warning("Local history unavailable: %s", exc)
            return []

    def clear_local_history(self) -> None:
        self._local.clear()

    def _remote_selected(self) -> bool:
        self.select_backing()
        return bool(self._use_remote)

    def _active_name(self) -> str:
        if self._use_remote and self._remote is not None:
            return self._remote.name
        return self._local.name


def _record_from_entry(entry: dict[str, Any]) -> AttemptRecord:
    recorded_at = _parse_timestamp(entry.get("recorded_at"))
    if recorded_at is None:
        recorded_at = datetime.fromtimestamp(int(entry.get("timestamp", 0)) / 1000, tz=timezone.utc)
    return AttemptRecord(
        score=int(entry["score"]),
        recorded_at=recorded_at,
        duration_seconds=entry.get("duration_seconds"),
    )


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _expect_row(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise RemoteServiceError(f"Unexpected {what} payload: {value!r}")
    return value
