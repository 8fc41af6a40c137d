"""
Fatal error types for export jobs.

Anything raised from here aborts the current job run; the job boundary in
``catalog_export.jobs`` turns it into an ``ERROR`` status. Recoverable,
per-batch and per-ID problems are reported through ``TransportResponse``
instead and never raised.

    ExportError
    ├── ConfigurationInvalid
    ├── TransportFailure
    └── ResetFailure
"""

from typing import Any, Dict, List, Optional


class ExportError(Exception):
    """Base exception carrying a message and optional context."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({context_str})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConfigurationInvalid(ExportError):
    """Export cannot start: backend disabled, or URL, key or mapping missing."""

    def __init__(self, problems: List[str], context: Optional[Dict[str, Any]] = None):
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems), context)


class TransportFailure(ExportError):
    """The ingestion service rejected a batch; the run halted."""

    def __init__(self, message: str, processed_count: int = 0,
                 context: Optional[Dict[str, Any]] = None):
        self.processed_count = processed_count
        super().__init__(message, context)


class ResetFailure(ExportError):
    """The remote collection could not be cleared before a full export."""
