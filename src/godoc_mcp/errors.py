from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_PATH = "INVALID_PATH"
    PROJECT_CREATION_FAILED = "PROJECT_CREATION_FAILED"
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    SYMBOL_NOT_FOUND = "SYMBOL_NOT_FOUND"
    AMBIGUOUS_REFERENCE = "AMBIGUOUS_REFERENCE"
    PLATFORM_EXCLUDED = "PLATFORM_EXCLUDED"
    DOC_EXECUTION_FAILED = "DOC_EXECUTION_FAILED"
    PAGE_OUT_OF_RANGE = "PAGE_OUT_OF_RANGE"


class GodocError(Exception):
    """Raised for all expected, request-scoped failure conditions.

    Caught by server.py and serialised into the MCP error response.
    Business logic lets it propagate so the agent receives a structured
    error with a suggestion instead of a bare stack trace.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }
