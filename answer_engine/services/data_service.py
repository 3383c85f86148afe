"""
HTTP client for the remote data service and the LMS grading endpoints.

The answer key is read PostgREST-style from ``test_answer_keys``; re-sync
and submission go to the LMS app's ``/api/tests/{id}/...`` routes.
"""
from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from answer_engine.config import (
    APP_BASE_URL,
    DATA_SERVICE_KEY,
    DATA_SERVICE_URL,
    REQUEST_TIMEOUT_SECONDS,
)
from answer_engine.engine.submission import DEFAULT_SUBMIT_ERROR, SubmissionError
from answer_engine.models.answer_key import AnswerKeyEntry, SubmissionResult

log = logging.getLogger(__name__)


class RemoteServiceError(Exception):
    """The remote data service could not be reached or answered badly."""


class RemoteDataClient:
    """Answer-key source, re-sync trigger and submission gateway over HTTP."""

    def __init__(
        self,
        data_service_url: str = DATA_SERVICE_URL,
        app_base_url: str = APP_BASE_URL,
        api_key: str = DATA_SERVICE_KEY,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self._data_service_url = data_service_url.rstrip("/")
        self._app_base_url = app_base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        if api_key:
            self._session.headers.update(
                {"apikey": api_key, "Authorization": f"Bearer {api_key}"}
            )

    def fetch_answer_key(self, test_id: str) -> list[AnswerKeyEntry]:
        """Return answer-key rows, highest question number first."""
        try:
            response = self._session.get(
                f"{self._data_service_url}/rest/v1/test_answer_keys",
                params={
                    "test_id": f"eq.{test_id}",
                    "select": "question_number,correct_answer",
                    "order": "question_number.desc",
                },
                timeout=self._timeout,
            )
            response.raise_for_status()
            rows = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise RemoteServiceError(f"Answer key query failed: {exc}") from exc

        if not isinstance(rows, list):
            raise RemoteServiceError("Answer key query returned a non-list payload")

        entries: list[AnswerKeyEntry] = []
        for row in rows:
            try:
                entries.append(AnswerKeyEntry.model_validate(row))
            except ValidationError as exc:
                log.warning("Skipping malformed answer key row for test %s: %s", test_id, exc)
        return entries

    def trigger_resync(self, test_id: str) -> None:
        """Ask the LMS to re-extract the answer key from the test document."""
        try:
            response = self._session.post(
                f"{self._app_base_url}/api/tests/{test_id}/sync-answer-key",
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise RemoteServiceError(f"Answer key re-sync failed: {exc}") from exc

    def submit_answers(self, test_id: str, answers: dict[int, str]) -> SubmissionResult:
        """Post the answer sheet for grading."""
        body = {"answers": {str(q): option for q, option in sorted(answers.items())}}
        try:
            response = self._session.post(
                f"{self._app_base_url}/api/tests/{test_id}/submit",
                json=body,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise SubmissionError(DEFAULT_SUBMIT_ERROR) from exc

        payload = _json_or_empty(response)
        if not response.ok or not payload.get("success"):
            error = payload.get("error")
            raise SubmissionError(error if isinstance(error, str) and error else DEFAULT_SUBMIT_ERROR)

        attempt = payload.get("attempt")
        if not isinstance(attempt, dict):
            raise SubmissionError(DEFAULT_SUBMIT_ERROR)
        try:
            return SubmissionResult.from_attempt_payload(attempt)
        except (KeyError, TypeError, ValueError) as exc:
            log.error("Malformed submission response for test %s: %s", test_id, exc)
            raise SubmissionError(DEFAULT_SUBMIT_ERROR) from exc


def _json_or_empty(response: requests.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
