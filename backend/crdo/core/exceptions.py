"""
Error taxonomy shared by the engine and the HTTP layer.

Every error carries a machine-readable `code`; the handlers registered in
`crdo.main` render them as `{"error", "details", "code"}`.
"""
from typing import Optional


class CrdoError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(
        self,
        error: str,
        details: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(error)
        self.error = error
        self.details = details
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        body = {"error": self.error, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class AuthenticationError(CrdoError):
    """Missing or invalid bearer credential."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, details: Optional[str] = None):
        super().__init__("Unauthorized", details)


class ValidationError(CrdoError):
    """Submission outside accepted bounds; raised before any write."""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(CrdoError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(CrdoError):
    status_code = 409
    code = "CONFLICT"


class DependencyError(CrdoError):
    """Storage or identity provider failure. The message stays generic."""

    status_code = 500
    code = "DEPENDENCY_FAILURE"

    def __init__(self, error: str = "Service dependency failed"):
        super().__init__(error)
