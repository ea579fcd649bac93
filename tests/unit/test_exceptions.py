"""Tests for core/exceptions.py."""
from __future__ import annotations

import pytest

from launchwing.core.exceptions import (
    BODY_PREVIEW_CHARS,
    BatchGenerationError,
    BuildError,
    ConfigurationError,
    InvalidArgument,
    InvalidPathError,
    LaunchwingError,
    MalformedResponse,
    PreconditionFailed,
    PublishError,
    RequestRejected,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)


# ---------------------------------------------------------------------------
# LaunchwingError base class
# ---------------------------------------------------------------------------


def test_base_exception_message() -> None:
    exc = LaunchwingError("something went wrong")
    assert str(exc) == "something went wrong"


def test_base_exception_defaults() -> None:
    exc = LaunchwingError("msg")
    assert exc.code is None
    assert exc.details == {}
    assert exc.status_code is None
    assert exc.retry_after is None
    assert exc.is_retryable is False


@pytest.mark.parametrize(
    "cls",
    [
        ConfigurationError,
        PreconditionFailed,
        InvalidArgument,
        UpstreamError,
        RequestRejected,
        UpstreamTimeoutError,
        UpstreamConnectionError,
        MalformedResponse,
    ],
)
def test_subclasses_derive_from_base(cls: type[LaunchwingError]) -> None:
    assert issubclass(cls, LaunchwingError)


def test_precondition_failed_never_retryable() -> None:
    assert PreconditionFailed("empty").is_retryable is False


# ---------------------------------------------------------------------------
# Upstream errors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("status", [408, 429, 502, 503, 504])
def test_gateway_statuses_are_retryable(status: int) -> None:
    assert UpstreamError("boom", status=status).is_retryable is True


@pytest.mark.parametrize("status", [500, 501, None])
def test_other_statuses_are_not_retryable(status: int | None) -> None:
    assert UpstreamError("boom", status=status).is_retryable is False


def test_request_rejected_never_retryable_even_for_429() -> None:
    assert RequestRejected("nope", status=429).is_retryable is False


def test_timeout_and_connection_errors_always_retryable() -> None:
    assert UpstreamTimeoutError("slow").is_retryable is True
    assert UpstreamConnectionError("refused").is_retryable is True


def test_upstream_error_truncates_body() -> None:
    exc = UpstreamError("boom", status=500, body="x" * (BODY_PREVIEW_CHARS + 50))
    assert len(exc.body) == BODY_PREVIEW_CHARS
    assert exc.details["body"] == exc.body
    assert exc.details["status"] == 500
    assert exc.status_code == 500


def test_upstream_error_keeps_retry_after() -> None:
    exc = UpstreamError("slow down", status=429, retry_after=3.0)
    assert exc.retry_after == 3.0


# ---------------------------------------------------------------------------
# Pipeline errors
# ---------------------------------------------------------------------------


def test_invalid_path_error_carries_path_and_reason() -> None:
    exc = InvalidPathError("../etc/passwd", "contains empty or relative segments")
    assert isinstance(exc, PreconditionFailed)
    assert exc.path == "../etc/passwd"
    assert exc.code == "invalid_path"
    assert "../etc/passwd" in str(exc)


def test_batch_generation_error_keeps_completed_files() -> None:
    exc = BatchGenerationError("batch 2 failed", batch_index=1, completed_files=["a"])
    assert exc.batch_index == 1
    assert exc.completed_files == ["a"]
    assert exc.details == {"batch_index": 1}


def test_publish_error_prefixes_step() -> None:
    exc = PublishError("create_tree", "HTTP 500", details={"repo": "mvp-x"}, status_code=500)
    assert str(exc) == "create_tree: HTTP 500"
    assert exc.step == "create_tree"
    assert exc.details == {"step": "create_tree", "repo": "mvp-x"}
    assert exc.status_code == 500


def test_build_error_names_stage_and_partial() -> None:
    exc = BuildError("publishing", "boom", partial={"files": ["a"]})
    assert str(exc) == "Build failed during publishing: boom"
    assert exc.stage == "publishing"
    assert exc.partial == {"files": ["a"]}
    assert exc.code == "publishing"


def test_build_error_partial_defaults_to_empty() -> None:
    assert BuildError("planning", "x").partial == {}
