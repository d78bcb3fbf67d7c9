"""
Exception taxonomy for the CaaS graph engine.

Non-fatal conditions (unknown data-entry kinds, unmapped top-level items,
missing remote configuration, depth limit reached) are logged and never
raised. The classes below cover the conditions that must stop a request.
"""

from typing import Optional


class CaaSGraphError(Exception):
    """Base class for all errors raised by the engine."""


class ConfigurationError(CaaSGraphError, ValueError):
    """Raised when the API configuration is incomplete or invalid."""

    MISSING_API_KEY = "MISSING_API_KEY"
    MISSING_CAAS_URL = "MISSING_CAAS_URL"
    MISSING_TENANT_ID = "MISSING_TENANT_ID"
    MISSING_PROJECT_ID = "MISSING_PROJECT_ID"
    MISSING_REMOTE_ID = "MISSING_REMOTE_ID"
    MISSING_REMOTE_LOCALE = "MISSING_REMOTE_LOCALE"
    UNKNOWN_CONTENT_MODE = "UNKNOWN_CONTENT_MODE"


class CaaSMapperError(CaaSGraphError, RuntimeError):
    """Data-integrity error: the content tree cannot be mapped."""


class UnknownBodyContentError(CaaSMapperError):
    """Raised for page-body content of a kind the mapper does not understand."""

    MESSAGE = "Unknown BodyContent could not be mapped."

    def __init__(self, fs_type: Optional[str]):
        self.fs_type = fs_type
        super().__init__(f"{self.MESSAGE} fsType=[{fs_type}]")


class ImageMapValueError(CaaSMapperError):
    """Raised when an image map carries no value payload."""

    def __init__(self):
        super().__init__("ImageMap value is null")


class CaaSApiError(CaaSGraphError):
    """Raised when a request against the content store fails."""

    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN_REMOTE = "UNKNOWN_REMOTE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    def __init__(self, message: str = UNKNOWN_ERROR, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class NotAuthorizedError(CaaSApiError):
    def __init__(self, status_code: Optional[int] = 401):
        super().__init__(CaaSApiError.NOT_AUTHORIZED, status_code)


class NotFoundError(CaaSApiError):
    def __init__(self, status_code: Optional[int] = 404):
        super().__init__(CaaSApiError.NOT_FOUND, status_code)


class UnknownRemoteProjectError(CaaSApiError):
    def __init__(self, remote_project_id: str):
        self.remote_project_id = remote_project_id
        super().__init__(f"{CaaSApiError.UNKNOWN_REMOTE}: {remote_project_id}")
