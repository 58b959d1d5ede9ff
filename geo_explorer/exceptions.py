from typing import Optional


class ExplorerError(Exception):
    """Base exception for explorer operations"""
    pass


class ConfigurationError(ExplorerError):
    """Raised when the model credential or settings are missing"""
    pass


class ValidationError(ExplorerError):
    """Raised when a precondition fails before any external call is made"""
    pass


class StructuredQueryError(ExplorerError):
    """Base for failures of a single structured model call"""
    pass


class RequestFailed(StructuredQueryError):
    """Raised when the external model call errors or returns unparseable text"""
    pass


class SchemaMismatch(StructuredQueryError):
    """Raised when the parsed response lacks the declared structure"""
    pass


class FallbackExhausted(StructuredQueryError):
    """Raised when both the primary and the fallback request failed"""

    def __init__(self, message: str, primary_cause: Exception, fallback_cause: Exception):
        super().__init__(message)
        self.primary_cause = primary_cause
        self.fallback_cause = fallback_cause


class QueryFailed(ExplorerError):
    """
    Summarized orchestrator failure.

    ``step_id`` names the thought step that was marked ``error`` (None when
    the orchestrator has no visible steps for the failure).
    """

    def __init__(self, message: str, step_id: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(message)
        self.step_id = step_id
        self.cause = cause


class QuerySuperseded(ExplorerError):
    """Raised when a newer query on the same session replaced this one"""
    pass
