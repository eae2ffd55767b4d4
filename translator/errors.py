"""
Error taxonomy for the translator.
Every failure that reaches the caller is a TranslatorError carrying the HTTP
status the API layer answers with.
"""
from typing import Any, Dict, Optional


class TranslatorError(Exception):
    """Base error with an HTTP status and a caller-safe message."""

    status_code: int = 500
    default_message: str = "Internal Server Error."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": {"status": self.status_code, "message": self.message}}


class ValidationError(TranslatorError):
    """Malformed or missing request parameters."""
    status_code = 422
    default_message = "Invalid request parameters."


class NotFoundError(TranslatorError):
    """Unknown data product config or template."""
    status_code = 404
    default_message = "Not found."


class MisconfigurationError(TranslatorError):
    """Template lacks auth/resource/protocol settings or a required plugin."""
    status_code = 500
    default_message = "Insufficient configurations."


class UpstreamError(TranslatorError):
    """Backend failure not recovered by a plugin. Status is passed through."""
    status_code = 500
    default_message = "Internal Server Error."

    def __init__(self, status_code: Optional[int] = None, message: Optional[str] = None,
                 reference: Any = None):
        super().__init__(message=message, status_code=status_code or 500)
        # Additional info about the cause; never sent to the caller
        self.reference = reference


class ServiceUnavailableError(TranslatorError):
    """Registries have not finished loading."""
    status_code = 503
    default_message = "Service is starting up."
