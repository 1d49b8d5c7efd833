"""Custom exceptions for insider-signals."""


class InsiderSignalsError(Exception):
    """Base exception for all insider-signals errors."""

    def __init__(self, message: str, *args: object) -> None:
        self.message = message
        super().__init__(message, *args)


# Extraction errors
class ExtractionError(InsiderSignalsError):
    """Base error for the normalize/extract stages."""


class MalformedDocument(ExtractionError):
    """Form 4 XML could not be parsed. Fatal for the filing."""

    def __init__(
        self,
        message: str,
        *,
        parse_error: Exception | None = None,
        accession_number: str | None = None,
    ) -> None:
        self.parse_error = parse_error
        self.accession_number = accession_number
        super().__init__(message)


class MissingRequiredField(ExtractionError):
    """A required field is absent or empty. Fatal for the filing."""

    def __init__(self, field_path: str, accession_number: str | None = None) -> None:
        self.field_path = field_path
        self.accession_number = accession_number
        super().__init__(f"Missing required field: {field_path}")


class DataIntegrityError(ExtractionError):
    """Non-fatal data problem (duplicate footnote ids, unknown codes).

    Never raised by the pipeline; carried as a warning diagnostic.
    """

    def __init__(self, message: str, field_path: str | None = None) -> None:
        self.field_path = field_path
        super().__init__(message)


# Storage errors
class StorageError(InsiderSignalsError):
    """Base error for storage layer."""


class DatabaseConnectionError(StorageError):
    """Failed to connect to database."""


class RedisConnectionError(StorageError):
    """Failed to connect to Redis."""
