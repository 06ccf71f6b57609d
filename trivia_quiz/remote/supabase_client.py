"""Thin client for the Supabase REST (PostgREST) interface used by the quiz."""

from __future__ import annotations

import logging
from typing import Any

import requests

from trivia_quiz.constants.network_constants import (
    ATTEMPTS_TABLE,
    GLOBAL_STATS_RPC,
    QUESTIONS_TABLE,
    REMOTE_TIMEOUT_SECONDS,
)
from trivia_quiz.core.errors import RemoteServiceError

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Reads question rows and reads/writes attempt rows of a Supabase project."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = REMOTE_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        if not base_url or not api_key:
            raise ValueError("Supabase URL and API key are both required.")
        self._rest_url = base_url.rstrip("/") + "/rest/v1"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def probe(self) -> bool:
        """Return True when the questions table can be queried."""
        try:
            self._request("GET", f"/{QUESTIONS_TABLE}", params={"select": "id", "limit": "1"})
        except RemoteServiceError as exc:
            logger.warning("Supabase connection check failed: %s", exc)
            return False
        logger.info("Supabase connection established")
        return True

    def fetch_questions(self) -> list[dict[str, Any]]:
        rows = self._request(
            "GET",
            f"/{QUESTIONS_TABLE}",
            params={"select": "*", "active": "eq.true", "order": "id"},
        )
        return self._expect_rows(rows)

    def insert_attempt(self, score: int, total_time: float | None = None) -> dict[str, Any]:
        rows = self._request(
            "POST",
            f"/{ATTEMPTS_TABLE}",
            json={"score": score, "total_time": total_time},
            headers={"Prefer": "return=representation"},
        )
        inserted = self._expect_rows(rows)
        if not inserted:
            raise RemoteServiceError("Attempt insert returned no row.")
        return inserted[0]

    def fetch_global_stats(self) -> dict[str, Any]:
        rows = self._expect_rows(self._request("POST", f"/rpc/{GLOBAL_STATS_RPC}", json={}))
        return rows[0] if rows else {}

    def fetch_attempts(self, limit: int | None = None) -> list[dict[str, Any]]:
        params = {"select": "id,score,total_time,created_at", "order": "created_at.desc"}
        if limit is not None:
            params["limit"] = str(limit)
        return self._expect_rows(self._request("GET", f"/{ATTEMPTS_TABLE}", params=params))

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        merged_headers = dict(self._headers)
        if headers:
            merged_headers.update(headers)
        try:
            response = self._session.request(
                method,
                self._rest_url + path,
                params=params,
                json=json,
                headers=merged_headers,
                timeout=self._timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise RemoteServiceError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise RemoteServiceError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _expect_rows(payload: Any) -> list[dict[str, Any]]:
        if not isinstance(payload, list):
            raise RemoteServiceError(f"Expected a list of rows, got {type(payload).__name__}.")
        return payload
