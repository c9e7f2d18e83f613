"""Error body returned by every failing auth endpoint."""

from typing import TypedDict


class ErrorResponse(TypedDict):
    error: str
    message: str
