"""Error taxonomy shared by the vault components.

Every error a caller can observe is one of these kinds. The API layer turns
them into ``{"detail": ..., "error": kind}`` responses with ``status_code``.
"""


class SecureDataError(Exception):
    """Base class for all user-visible vault errors."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.kind

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.kind}


class ValidationError(SecureDataError):
    """Missing or malformed required field."""

    kind = "validation_error"
    status_code = 400

    def __init__(self, message: str = "", fields: list[dict] | None = None):
        super().__init__(message or "Invalid input")
        self.fields = fields or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = self.fields
        return data


class Unauthorized(SecureDataError):
    """Not authorized."""

    kind = "unauthorized"
    status_code = 401


class NotFound(SecureDataError):
    """Not found."""

    kind = "not_found"
    status_code = 404


class Conflict(SecureDataError):
    """Uniqueness violation on website+username or website+email."""

    kind = "conflict"
    status_code = 409


class PayloadTooLarge(SecureDataError):
    """Upload exceeds the size cap."""

    kind = "payload_too_large"
    status_code = 413


class InternalError(SecureDataError):
    """Server Error."""

    kind = "internal_error"
    status_code = 500


class StorageUnavailable(SecureDataError):
    """Storage connection is not available."""

    kind = "storage_unavailable"
    status_code = 503
