from __future__ import annotations

from typing import Any


class LaunchwingError(Exception):
    """Base exception for all launchwing errors.

    Attributes:
        code: Optional machine-readable error code (e.g. ``"precondition"``).
        details: Arbitrary key/value context about the error.
        status_code: HTTP status code when the error originates from an
            upstream response (``None`` when not applicable).
        retry_after: Suggested delay in seconds before retrying the
            operation (``None`` when unknown or not applicable).
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.status_code = status_code
        self.retry_after = retry_after

    @property
    def is_retryable(self) -> bool:
        """Whether the operation that raised this error can be retried."""
        return False


class ConfigurationError(LaunchwingError): ...


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------


class PreconditionFailed(LaunchwingError):
    """A step was invoked with invalid or empty input.

    Never retried: the caller has to change its input.
    """


class InvalidArgument(PreconditionFailed): ...


class InvalidPathError(PreconditionFailed):
    """A generated file path failed validation while strict mode was on."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Invalid file path {path!r}: {reason}",
            code="invalid_path",
            details={"path": path, "reason": reason},
        )
        self.path = path
        self.reason = reason


# ---------------------------------------------------------------------------
# Upstream errors
# ---------------------------------------------------------------------------

BODY_PREVIEW_CHARS = 400
"""Upstream response bodies are truncated to this many characters."""


class UpstreamError(LaunchwingError):
    """An upstream service answered with a non-success status.

    ``body`` holds the response text truncated to :data:`BODY_PREVIEW_CHARS`.
    Only the gateway-style statuses listed in :attr:`RETRYABLE_STATUSES` are
    retryable.
    """

    RETRYABLE_STATUSES: frozenset[int] = frozenset({408, 429, 502, 503, 504})

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        body: str = "",
        details: dict[str, Any] | None = None,
        retry_after: float | None = None,
    ) -> None:
        body = body[:BODY_PREVIEW_CHARS]
        merged: dict[str, Any] = {"status": status, "body": body}
        merged.update(details or {})
        super().__init__(
            message,
            code="upstream",
            details=merged,
            status_code=status,
            retry_after=retry_after,
        )
        self.status = status
        self.body = body

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return self.status in self.RETRYABLE_STATUSES


class RequestRejected(UpstreamError):
    """The upstream rejected the request with a 4xx client error.

    Never retryable: resending the same request gives the same answer.
    """

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return False


class UpstreamTimeoutError(UpstreamError):
    """The upstream did not respond before the deadline (or was aborted).

    Always retryable.
    """

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return True


class UpstreamConnectionError(UpstreamError):
    """A transport-level connection failure (DNS, TCP, TLS).

    Always retryable.
    """

    @property
    def is_retryable(self) -> bool:  # noqa: D102
        return True


class MalformedResponse(LaunchwingError):
    """The upstream answered 2xx with a body that cannot be decoded."""


# ---------------------------------------------------------------------------
# Pipeline errors
# ---------------------------------------------------------------------------


class BatchGenerationError(LaunchwingError):
    """A generation batch failed after retries.

    ``completed_files`` holds the output of the batches that succeeded before
    the failure. It is kept for diagnostics and never published.
    """

    def __init__(
        self,
        message: str,
        *,
        batch_index: int,
        completed_files: list[Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code="generation",
            details={"batch_index": batch_index},
        )
        self.batch_index = batch_index
        self.completed_files = completed_files or []


class PublishError(LaunchwingError):
    """A Git hosting step failed.

    ``step`` names the failing transition so callers can decide whether to
    resume.
    """

    def __init__(
        self,
        step: str,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            f"{step}: {message}",
            code="publish",
            details={"step": step, **(details or {})},
            status_code=status_code,
        )
        self.step = step


class BuildError(LaunchwingError):
    """Terminal build failure naming the stage that failed.

    ``partial`` describes what completed before the failure (generated file
    paths, sanitized project paths, provisioned namespace).
    """

    def __init__(
        self,
        stage: str,
        message: str,
        *,
        partial: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Build failed during {stage}: {message}",
            code=stage,
            details={"stage": stage},
        )
        self.stage = stage
        self.partial = partial or {}
