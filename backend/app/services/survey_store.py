# app/services/survey_store.py
"""
Append-only survey collection kept as one JSON document in a storage backend:

  {"surveys": [...], "metadata": {"total_responses": N, "created_at": "..."}}

Appends are read-modify-write on the whole document and run under a lock
owned by the store, so concurrent requests in one process never lose updates.
Reads skip the lock; backends replace the document atomically.
"""
from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from app.core.config import settings
from app.schemas.survey import SurveyCollection, SurveyResponses
from app.services.storage import StorageBackend, StorageFailure, get_storage

logger = logging.getLogger(__name__)

RESPONSE_FIELDS: tuple[str, ...] = tuple(SurveyResponses.model_fields)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _now_ms() -> int:
    return int(time.time() * 1000)


class SurveyStore:
    def __init__(self, storage: StorageBackend, key: str = "surveys.json"):
        self.storage = storage
        self.key = key
        self._lock = threading.Lock()

    # ---------- Internal helpers ----------

    def _empty_collection(self) -> dict[str, Any]:
        return {
            "surveys": [],
            "metadata": {"total_responses": 0, "created_at": utc_now_iso()},
        }

    def _load(self) -> dict[str, Any]:
        data = self.storage.read_json(self.key)
        try:
            return SurveyCollection.model_validate(data).model_dump()
        except ValidationError as e:
            raise StorageFailure(f"{self.key} does not hold a survey collection") from e

    def _initialize_locked(self) -> None:
        if self.storage.exists(self.key):
            return
        self.storage.write_json(self.key, self._empty_collection())
        logger.info("Initialized empty survey collection at %s", self.key)

    @staticmethod
    def _next_id(surveys: list[dict[str, Any]]) -> int:
        """Millisecond timestamp, bumped past the last id when the clock has not moved."""
        candidate = _now_ms()
        if surveys:
            candidate = max(candidate, surveys[-1]["id"] + 1)
        return candidate

    # ---------- Public API ----------

    def initialize(self) -> None:
        """Create the empty collection if nothing is persisted yet. Never resets data."""
        with self._lock:
            self._initialize_locked()

    def list(self) -> SurveyCollection:
        """Return every record (oldest first) and the metadata."""
        if not self.storage.exists(self.key):
            self.initialize()
        return SurveyCollection.model_validate(self._load())

    def append(self, responses: SurveyResponses | Mapping[str, str]) -> int:
        """Add one record and return its id. Responses are stored as given."""
        if isinstance(responses, SurveyResponses):
            responses = responses.model_dump()
        answers = {name: responses[name] for name in RESPONSE_FIELDS}

        with self._lock:
            self._initialize_locked()
            data = self._load()

            record = {
                "id": self._next_id(data["surveys"]),
                "responses": answers,
                "timestamp": utc_now_iso(),
            }
            data["surveys"].append(record)
            data["metadata"]["total_responses"] = len(data["surveys"])

            self.storage.write_json(self.key, data)

        logger.info("Saved survey id=%s (total=%s)", record["id"], data["metadata"]["total_responses"])
        return record["id"]


# Global store instance
_store: Optional[SurveyStore] = None
_store_guard = threading.Lock()


def get_store() -> SurveyStore:
    """FastAPI dependency returning the process-wide store"""
    global _store
    if _store is None:
        # dependencies run in the threadpool; two first requests must share one lock
        with _store_guard:
            if _store is None:
                _store = SurveyStore(get_storage(), key=settings.surveys_key)
    return _store
