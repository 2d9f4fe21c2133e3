"""Structured errors and response envelope helpers."""

from typing import Any, Optional

from pydantic import ValidationError


def build_error_payload(message: str, code: int) -> dict[str, Any]:
    return {"status": "error", "error": {"message": message, "code": code}}


def build_success_payload(data: Any) -> dict[str, Any]:
    return {"status": "success", "data": data}


class AtlasError(Exception):
    """Application error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        return build_error_payload(self.message, self.status_code)


class ValidationFailed(AtlasError):
    status_code = 400

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "ValidationFailed":
        """Flatten pydantic field errors into one readable message."""
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
            parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
        return cls("Invalid data: " + "; ".join(parts))


class UnsupportedOperation(AtlasError):
    status_code = 400


class NotImplementedYet(AtlasError):
    status_code = 501


class NotFoundError(AtlasError):
    status_code = 404


class ConfigurationError(AtlasError):
    """Raised at startup when the runtime configuration is unusable."""
