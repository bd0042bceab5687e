"""Persistence contracts and backends for analysis results and overrides.

AnalysisStore backends serialize AnalysisResult as JSON, either as one blob
per meeting or as one Redis string per meeting. Corrupt or schema-mismatched
payloads raise MalformedCachedPayloadError; the override merger treats that
as a cache miss.
"""

from __future__ import annotations

from typing import Protocol

import redis.asyncio as aioredis
import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError

from src.meeting_intel.core.errors import (
    MalformedCachedPayloadError,
    StorageUnavailableError,
)
from src.meeting_intel.meetings.blob_store import BlobStore
from src.meeting_intel.meetings.schemas import AnalysisResult, OverrideSetting

logger = structlog.get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"
REDIS_KEY_PREFIX = "meeting-analysis:"


# ── Contracts ────────────────────────────────────────────────────────────────


class AnalysisStore(Protocol):
    """Durable storage for per-meeting analysis results."""

    async def get(self, meeting_id: str) -> AnalysisResult | None: ...

    async def put(self, meeting_id: str, result: AnalysisResult) -> None: ...


class OverrideStore(Protocol):
    """Durable storage for manual relevance overrides."""

    async def get(self, meeting_id: str) -> OverrideSetting | None: ...

    async def put(self, setting: OverrideSetting) -> None: ...


def _decode(meeting_id: str, payload: str | bytes) -> AnalysisResult:
    try:
        return AnalysisResult.model_validate_json(payload)
    except ValidationError as exc:
        raise MalformedCachedPayloadError(
            meeting_id, f"{exc.error_count()} validation error(s)"
        ) from exc


# ── Blob Backend ─────────────────────────────────────────────────────────────


class BlobAnalysisStore:
    """Analysis documents stored as ``<prefix>/<meeting_id>.json`` blobs.

    Args:
        blob_store: Any BlobStore implementation.
        prefix: Key prefix for analysis documents.
    """

    def __init__(self, blob_store: BlobStore, prefix: str = "analysis") -> None:
        self._blob_store = blob_store
        self._prefix = prefix.rstrip("/")

    def key_for(self, meeting_id: str) -> str:
        return f"{self._prefix}/{meeting_id}.json"

    async def get(self, meeting_id: str) -> AnalysisResult | None:
        content = await self._blob_store.get_content(self.key_for(meeting_id))
        if content is None:
            return None
        return _decode(meeting_id, content)

    async def put(self, meeting_id: str, result: AnalysisResult) -> None:
        await self._blob_store.put(
            self.key_for(meeting_id),
            result.model_dump_json(),
            JSON_CONTENT_TYPE,
        )


# ── Redis Backend ────────────────────────────────────────────────────────────


class RedisAnalysisStore:
    """Analysis documents stored as JSON strings under ``meeting-analysis:<id>``.

    Args:
        redis: redis.asyncio client (decode_responses may be on or off).
        ttl_seconds: Optional expiry per key; None keeps results indefinitely.
    """

    def __init__(self, redis: aioredis.Redis, ttl_seconds: int | None = None) -> None:
        self._redis = redis
        self._ttl_seconds = ttl_seconds

    @staticmethod
    def key_for(meeting_id: str) -> str:
        return f"{REDIS_KEY_PREFIX}{meeting_id}"

    async def get(self, meeting_id: str) -> AnalysisResult | None:
        try:
            payload = await self._redis.get(self.key_for(meeting_id))
        except RedisError as exc:
            raise StorageUnavailableError("redis", "get", str(exc)) from exc
        if payload is None:
            return None
        return _decode(meeting_id, payload)

    async def put(self, meeting_id: str, result: AnalysisResult) -> None:
        try:
            await self._redis.set(
                self.key_for(meeting_id),
                result.model_dump_json(),
                ex=self._ttl_seconds,
            )
        except RedisError as exc:
            raise StorageUnavailableError("redis", "set", str(exc)) from exc


__all__ = [
    "AnalysisStore",
    "BlobAnalysisStore",
    "OverrideStore",
    "RedisAnalysisStore",
]
