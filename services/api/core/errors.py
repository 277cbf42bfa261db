"""
Error taxonomy for the RootStudy API.

Every error carries the HTTP status it maps to and a short machine code.
`main.py` registers one exception handler that renders them as
`{"success": false, "message": ..., "error": code}`.
"""
from __future__ import annotations

from typing import Optional


class RootStudyError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self) -> dict:
        return {"success": False, "message": self.message, "error": self.code}


class BadRequest(RootStudyError):
    """Malformed or missing input."""
    status_code = 400
    code = "BAD_REQUEST"


class NotFound(RootStudyError):
    status_code = 404
    code = "NOT_FOUND"


class UnsupportedType(RootStudyError):
    status_code = 400
    code = "UNSUPPORTED_TYPE"


class TooLarge(RootStudyError):
    status_code = 400
    code = "TOO_LARGE"


class TooManyPages(RootStudyError):
    status_code = 400
    code = "TOO_MANY_PAGES"


class InvalidPage(RootStudyError):
    status_code = 400
    code = "INVALID_PAGE"


class StorageError(RootStudyError):
    """Object-store (Cloudinary) upload failed."""
    status_code = 500
    code = "STORAGE_ERROR"


class StoreError(RootStudyError):
    """Document store unreachable or a write failed."""
    status_code = 503
    code = "STORE_ERROR"


class ServiceError(RootStudyError):
    """Upstream AI / search API failed. 403 for quota problems."""
    status_code = 500
    code = "SERVICE_ERROR"


class InternalError(RootStudyError):
    status_code = 500
    code = "INTERNAL_ERROR"
