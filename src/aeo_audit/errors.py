"""Error taxonomy for the audit pipeline."""


class AuditError(Exception):
    """Base class for all audit errors."""


class InputValidationError(AuditError):
    """The submitted URL was rejected before any network I/O."""


class FetchError(AuditError):
    """A single resource could not be retrieved."""


class AnalyzerFault(AuditError):
    """An analyzer could not produce a score."""


class ExternalServiceError(AuditError):
    """The rendering backend or the performance API is unavailable."""
