"""Typed failures raised by the core and mapped to ServiceError codes.

Every error carries a stable ``code``. The service layer converts these
into :class:`~ogfetch.services.result.ServiceError` payloads and the
planner writes the code into ``og_error_code`` when error-writing is on.
"""

from __future__ import annotations


class OgFetchError(Exception):
    """Base class for all ogfetch failures."""

    code = "OGFETCH_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingCredential(OgFetchError):
    """No API key configured. Raised before any network attempt."""

    code = "MISSING_CREDENTIAL"

    def __init__(self, message: str = "No API key configured") -> None:
        super().__init__(message)


class InvalidResponse(OgFetchError):
    """Provider payload carries none of the known source views."""

    code = "INVALID_RESPONSE"


class FetchExhausted(OgFetchError):
    """All fetch attempts failed."""

    code = "FETCH_FAILURE"

    def __init__(self, url: str, attempts: int) -> None:
        super().__init__(f"Failed to fetch OpenGraph data after {attempts} attempts")
        self.url = url
        self.attempts = attempts


class NoActiveDocument(OgFetchError):
    """The document to process does not exist."""

    code = "NO_ACTIVE_FILE"


class NoUrlFound(OgFetchError):
    """The document has no URL to fetch metadata for."""

    code = "NO_URL_FOUND"


class ConfigurationError(OgFetchError):
    """Write policy cannot produce any field update."""

    code = "CONFIGURATION_ERROR"


class FileReadFailure(OgFetchError):
    """An existing document could not be read or decoded."""

    code = "FILE_READ_FAILURE"


class FileWriteFailure(OgFetchError):
    """Writing an existing document failed."""

    code = "FILE_WRITE_FAILURE"


class FileCreationFailure(OgFetchError):
    """Creating a new document failed."""

    code = "FILE_CREATION_FAILURE"


class ScreenshotFailure(OgFetchError):
    """The screenshot endpoint failed."""

    code = "SCREENSHOT_FAILURE"
