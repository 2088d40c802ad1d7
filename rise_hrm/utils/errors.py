from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Default HTTP status per error code; an explicit `status` wins.
HTTP_STATUS_BY_CODE: dict[str, int] = {
    "BAD_REQUEST": 400,
    "INVALID_STATE": 400,
    "AUTH_INVALID": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "RATE_LIMITED": 429,
    "INTERNAL": 500,
}


@dataclass(eq=False)
class ApiError(Exception):
    code: str
    message: str
    status: int | None = None
    details: Any | None = None

    def __post_init__(self) -> None:
        if self.status is None:
            self.status = HTTP_STATUS_BY_CODE.get(self.code, 500)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"
