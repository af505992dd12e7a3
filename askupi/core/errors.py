"""Error taxonomy shared by the AskUPI service and client core."""


class AskUpiError(Exception):
    """Base exception for AskUPI errors."""


class FileValidationError(AskUpiError):
    """Raised when a selected statement file violates the intake constraints."""

    def __init__(self, violations: list[str]) -> None:
        """Store every violated constraint, in check order."""
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class NetworkFailure(AskUpiError):
    """Raised on a non-2xx response or a transport error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Keep the HTTP status (None for transport errors)."""
        self.status_code = status_code
        super().__init__(message)


class Cancelled(AskUpiError):
    """Raised when the user aborts an in-flight upload."""


class UploadInProgress(AskUpiError):
    """Raised when an upload is submitted while another one holds the slot."""


class AnalysisRejected(AskUpiError):
    """Base for model output that did not yield a usable analysis."""


class MalformedResponse(AnalysisRejected):
    """Raised when no JSON object could be recovered from the model output."""

    def __init__(self, message: str, raw_prefix: str = "") -> None:
        """Keep a truncated prefix of the raw text for diagnostics."""
        self.raw_prefix = raw_prefix
        super().__init__(message)


class EmptyAnalysis(AnalysisRejected):
    """Raised when the analysis has no transactions."""


class IncompleteAnalysis(AnalysisRejected):
    """Raised when the analysis lacks a summary or has malformed fields."""


class StorageUnavailable(AskUpiError):
    """Raised by record stores when durable storage cannot be used."""
