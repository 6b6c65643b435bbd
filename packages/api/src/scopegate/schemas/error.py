# This project was developed with assistance from AI tools.
"""RFC 7807 Problem Details body shared by every error response."""

import uuid
from http import HTTPStatus

from fastapi import Request
from pydantic import BaseModel, Field


class ProblemDetails(BaseModel):
    """Problem Details for HTTP APIs (https://datatracker.ietf.org/doc/html/rfc7807)."""

    type: str = Field(default="about:blank", description="Problem type URI.")
    title: str = Field(description="Reason phrase of the HTTP status.")
    status: int
    detail: str = ""
    request_id: str = Field(
        default="",
        description="Echo of the X-Request-ID header, or a generated id for log correlation.",
    )
    instance: str = Field(default="", description="Path of the failing request.")

    @classmethod
    def for_request(cls, request: Request, status: int, detail: str) -> "ProblemDetails":
        try:
            title = HTTPStatus(status).phrase
        except ValueError:
            title = "Error"
        return cls(
            title=title,
            status=status,
            detail=detail,
            request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
            instance=request.url.path,
        )
