"""Exceptions raised by the recipe import pipeline.

Each error carries the HTTP status it is reported with; the API renders
all of them as ``{"error": message}``.
"""


class ImportPipelineError(Exception):
    """Base exception for recipe import failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(ImportPipelineError):
    """Raised for a missing or malformed request field, before any network call."""

    status_code = 400


class UpstreamFetchError(ImportPipelineError):
    """Raised when the recipe page answers with a non-success status."""

    status_code = 400

    def __init__(self, message: str, url: str | None = None, upstream_status: int | None = None):
        super().__init__(message)
        self.url = url
        self.upstream_status = upstream_status


class ExtractionError(ImportPipelineError):
    """Raised when the extractor fails or returns an unusable draft."""

    status_code = 500


class UnexpectedImportError(ImportPipelineError):
    """Raised for any other failure while importing."""

    status_code = 500
