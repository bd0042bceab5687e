"""Blob store contract and its S3 implementation.

The library only needs a handful of object operations: list a prefix, read a
text object, sign a download URL, write, and delete. ``BlobStore`` is the
narrow contract; ``S3BlobStore`` implements it with boto3, running the
blocking client calls in worker threads and retrying transient failures
with tenacity.

Not-found is a ``None`` return. Every other client or transport failure
surfaces as ``StorageUnavailableError``: throttling, timeouts, and 5xx
responses after retries are exhausted, anything else (AccessDenied,
NoSuchBucket) on the first attempt.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol, TypeVar

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from src.meeting_intel.core.errors import StorageUnavailableError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})
_TRANSIENT_CODES = frozenset({
    "InternalError",
    "RequestTimeout",
    "RequestTimeoutException",
    "ServiceUnavailable",
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "TooManyRequestsException",
})


class BlobObject(BaseModel):
    """Listing entry for one stored object."""

    key: str
    size: int = 0
    last_modified: datetime


class BlobStore(Protocol):
    """Object storage operations consumed by the library."""

    async def list(self, prefix: str) -> list[BlobObject]: ...

    async def get_content(self, key: str) -> str | None: ...

    async def get_signed_url(self, key: str, ttl: int) -> str: ...

    async def put(self, key: str, body: str | bytes, content_type: str) -> None: ...

    async def delete(self, key: str) -> None: ...


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _is_transient(exc: ClientError) -> bool:
    """Throttling, timeouts, and 5xx responses; everything else is permanent."""
    if _error_code(exc) in _TRANSIENT_CODES:
        return True
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return status >= 500


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, StorageUnavailableError) and exc.retryable


class S3BlobStore:
    """BlobStore backed by an S3 bucket.

    Args:
        bucket: Bucket name.
        region_name: AWS region for the default client.
        client: Pre-built boto3 S3 client (tests pass a stubbed one).
        max_attempts: Attempts per operation before giving up.
        wait: tenacity wait strategy between attempts.
    """

    def __init__(
        self,
        bucket: str,
        region_name: str = "us-east-1",
        client: Any | None = None,
        max_attempts: int = 3,
        wait: wait_base | None = None,
    ) -> None:
        self._bucket = bucket
        self._client = client or boto3.client("s3", region_name=region_name)
        self._max_attempts = max_attempts
        self._wait = wait or wait_exponential(multiplier=0.5, min=0.5, max=5)
        logger.info("blob_store.initialized", bucket=bucket, region=region_name)

    # ── Public API ────────────────────────────────────────────────────────

    async def list(self, prefix: str) -> list[BlobObject]:
        """List every object under ``prefix``, following continuation tokens."""
        return await self._run("list", self._list_sync, prefix)

    async def get_content(self, key: str) -> str | None:
        """Read an object as UTF-8 text. Returns None if the key does not exist."""
        return await self._run("get_content", self._get_content_sync, key)

    async def get_signed_url(self, key: str, ttl: int) -> str:
        """Presigned GET URL valid for ``ttl`` seconds."""
        return await self._run("get_signed_url", self._sign_sync, key, ttl)

    async def put(self, key: str, body: str | bytes, content_type: str) -> None:
        """Write an object, replacing any existing one."""
        payload = body.encode("utf-8") if isinstance(body, str) else body
        await self._run("put", self._put_sync, key, payload, content_type)

    async def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error in S3."""
        await self._run("delete", self._delete_sync, key)

    # ── Retry & Error Translation ─────────────────────────────────────────

    async def _run(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        return await retrying(asyncio.to_thread, self._translate, operation, fn, *args)

    def _translate(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except ClientError as exc:
            logger.warning(
                "blob_store.client_error",
                operation=operation,
                code=_error_code(exc),
            )
            raise StorageUnavailableError(
                "s3", operation, _error_code(exc), retryable=_is_transient(exc)
            ) from exc
        except BotoCoreError as exc:
            logger.warning(
                "blob_store.transport_error",
                operation=operation,
                error=str(exc),
            )
            raise StorageUnavailableError("s3", operation, str(exc)) from exc

    # ── Blocking boto3 Calls ──────────────────────────────────────────────

    def _list_sync(self, prefix: str) -> list[BlobObject]:
        objects: list[BlobObject] = []
        params: dict[str, Any] = {"Bucket": self._bucket, "Prefix": prefix}
        while True:
            response = self._client.list_objects_v2(**params)
            for item in response.get("Contents", []):
                objects.append(
                    BlobObject(
                        key=item["Key"],
                        size=item.get("Size", 0),
                        last_modified=item["LastModified"],
                    )
                )
            if not response.get("IsTruncated"):
                return objects
            params["ContinuationToken"] = response["NextContinuationToken"]

    def _get_content_sync(self, key: str) -> str | None:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                return None
            raise
        body = response.get("Body")
        if body is None:
            return ""
        return body.read().decode("utf-8", errors="replace")

    def _sign_sync(self, key: str, ttl: int) -> str:
        return self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self._bucket, "Key": key},
            ExpiresIn=ttl,
        )

    def _put_sync(self, key: str, payload: bytes, content_type: str) -> None:
        self._client.put_object(
            Bucket=self._bucket,
            Key=key,
            Body=payload,
            ContentType=content_type,
        )

    def _delete_sync(self, key: str) -> None:
        self._client.delete_object(Bucket=self._bucket, Key=key)


__all__ = ["BlobObject", "BlobStore", "S3BlobStore"]
