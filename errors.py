"""Error taxonomy for the analyzer service.

Every request-scoped failure is an ``AnalyzerError``. The HTTP layer renders
them with their ``status_code`` and public ``message``; ``details`` carries the
underlying cause for the caller.
"""
from typing import Optional


class AnalyzerError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        if message is not None:
            self.message = message
        self.details = details if details is not None else self.message
        # Reported as error.type; a wrapped cause keeps its own name
        self.error_type = type(self).__name__
        super().__init__(self.message)

    @classmethod
    def wrap(cls, message: str, cause: BaseException) -> "AnalyzerError":
        """Re-label ``cause`` with a route-level public message."""
        error = cls(message, details=getattr(cause, "details", None) or str(cause))
        error.error_type = getattr(cause, "error_type", type(cause).__name__)
        return error


class ConfigurationError(Exception):
    """Raised at startup when required settings are missing."""


# 4xx: detected before any expensive work


class ValidationError(AnalyzerError):
    status_code = 400
    message = "Invalid upload"


class NoTextExtractedError(AnalyzerError):
    status_code = 400
    message = "No text could be extracted from the image"


class MissingFieldError(AnalyzerError):
    status_code = 400
    message = "Question and analysis context are required"


class InvalidContextError(AnalyzerError):
    status_code = 400
    message = "Invalid analysis context structure"


# 5xx: surfaced after OCR or LLM work


class ProcessingError(AnalyzerError):
    status_code = 500
    message = "Error processing request"


class ModelResponseParseError(ProcessingError):
    message = "Model response was not valid JSON"


class ServiceTimeoutError(ProcessingError):
    status_code = 504
    message = "Upstream operation timed out"


class OcrTimeoutError(ServiceTimeoutError):
    message = "Text extraction timed out"


class LLMTimeoutError(ServiceTimeoutError):
    message = "Language model request timed out"
