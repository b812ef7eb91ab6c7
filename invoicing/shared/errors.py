"""Exception taxonomy for the invoice core.

Business validation problems are not exceptions: the reconciliation engine
returns them as a ValidationResult. Everything here aborts processing of a
single invoice.
"""


class InvoicingError(Exception):
    """Base class for all invoice core failures."""


class SchemaError(InvoicingError):
    """A model response was not JSON or did not match the expected shape.

    Attributes:
        raw_response: The offending response text, kept verbatim for diagnosis
        violations: Individual shape rules that failed (empty for JSON errors)
    """

    def __init__(
        self,
        message: str,
        raw_response: str | None = None,
        violations: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.raw_response = raw_response
        self.violations = list(violations or [])


class TransientServiceError(InvoicingError):
    """An external call failed in a way that may succeed on retry."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetriesExhaustedError(TransientServiceError):
    """Every permitted attempt failed with a retryable error."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(
            f"{operation} failed after {attempts} attempts: {last_error}",
            status_code=getattr(last_error, "status_code", None),
        )
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class TranslationError(InvoicingError):
    """An invoice could not be translated into a ledger payload."""

    def __init__(self, ledger: str, message: str) -> None:
        super().__init__(f"{ledger}: {message}")
        self.ledger = ledger
