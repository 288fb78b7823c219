"""RFC 7807 problem documents for the upload API."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Any, Mapping

from fastapi.responses import JSONResponse

from media_uploads.security.uploads import StorageFailure, UploadError

PROBLEM_MEDIA_TYPE = "application/problem+json"
CORRELATION_HEADER = "X-Correlation-ID"


@dataclass(frozen=True, slots=True)
class Problem:
    """A problem document; `code` is the machine-readable error identifier."""

    status: int
    code: str
    title: str
    detail: str
    instance: str | None = None
    type_: str = "about:blank"
    extras: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self, correlation_id: str) -> dict[str, Any]:
        payload = {
            "type": self.type_,
            "title": self.title,
            "status": self.status,
            "detail": self.detail,
            "code": self.code,
            "correlation_id": correlation_id,
            **self.extras,
        }
        if self.instance:
            payload["instance"] = self.instance
        return payload


def problem_response(
    problem: Problem,
    *,
    correlation_id: str | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """
    Render a problem as JSON.

    A correlation id already present in `headers` wins over the one passed in;
    the body and the header always carry the same value.
    """
    response_headers = dict(headers or {})
    cid = response_headers.setdefault(
        CORRELATION_HEADER, correlation_id or secrets.token_urlsafe(16)
    )
    return JSONResponse(
        status_code=problem.status,
        content=problem.to_payload(cid),
        headers=response_headers,
        media_type=PROBLEM_MEDIA_TYPE,
    )


def upload_problem(exc: UploadError, *, instance: str | None = None) -> Problem:
    """Describe an upload error for clients."""
    if isinstance(exc, StorageFailure):
        # The cause may mention server paths; it is only logged.
        return Problem(
            status=exc.status,
            code=exc.code,
            title="Upload could not be stored",
            detail="The upload could not be stored",
            instance=instance,
        )

    rule = getattr(exc, "rule", None)
    return Problem(
        status=exc.status,
        code=exc.code,
        title="Invalid upload",
        detail=exc.message,
        instance=instance,
        extras={"rule": rule} if rule else {},
    )
