"""Error taxonomy for storage-facing components.

Only transient or corrupt-data conditions are exceptions. Expected outcomes
(not found, skipped transcripts, low confidence) are plain return values and
never raised past a component boundary.
"""

from __future__ import annotations


class MeetingIntelError(Exception):
    """Base class for library errors."""


class StorageUnavailableError(MeetingIntelError):
    """A backing store could not serve a request (network, auth, throttling).

    Callers convert this into an empty or partial result and log it.
    ``retryable`` is False for failures a retry cannot fix (auth, missing
    bucket).
    """

    def __init__(
        self,
        store: str,
        operation: str,
        detail: str = "",
        retryable: bool = True,
    ) -> None:
        self.store = store
        self.operation = operation
        self.detail = detail
        self.retryable = retryable
        message = f"{store}.{operation} unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedCachedPayloadError(MeetingIntelError):
    """A persisted analysis payload could not be decoded.

    Treated as a cache miss by the override merger.
    """

    def __init__(self, meeting_id: str, detail: str = "") -> None:
        self.meeting_id = meeting_id
        self.detail = detail
        super().__init__(f"malformed cached analysis for {meeting_id}: {detail}")
