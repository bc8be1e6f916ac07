"""Custom exception hierarchy for ragline configuration and operations."""


class RagLineError(Exception):
    """Base exception for all ragline errors.

    All ragline-specific exceptions inherit from this class, enabling
    centralized exception handling at the CLI and answerer boundaries.
    """

    pass


class ConfigError(RagLineError):
    """Exception raised for configuration errors.

    Raised when configuration loading or parsing fails. Includes field-specific
    information to help users identify and fix configuration issues.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class ValidationError(RagLineError):
    """Exception raised for validation errors during configuration parsing.

    Attributes:
        field: The field that failed validation
        message: Description of the validation failure
        expected: Human description of expected value/type
        actual: The actual value that failed validation
    """

    def __init__(
        self,
        field: str,
        message: str,
        expected: str,
        actual: str,
    ) -> None:
        """Initialize ValidationError with detailed information.

        Args:
            field: Field that failed validation (dot notation for nested fields)
            message: Description of what went wrong
            expected: Human-readable description of expected value
            actual: The actual value that failed
        """
        self.field = field
        self.message = message
        self.expected = expected
        self.actual = actual
        full_message = (
            f"Validation error in '{field}': {message}\n"
            f"  Expected: {expected}\n"
            f"  Got: {actual}"
        )
        super().__init__(full_message)


class FileNotFoundError(RagLineError):
    """Exception raised when a configuration or source file is not found.

    Attributes:
        path: Path to the file that was not found
        message: Human-readable error message
    """

    def __init__(self, path: str, message: str) -> None:
        """Initialize FileNotFoundError with path and message.

        Args:
            path: Path to the file that was not found
            message: Descriptive error message, optionally with suggestions
        """
        self.path = path
        self.message = message
        super().__init__(f"File not found: {path}\n{message}")


class EmbeddingUnavailable(RagLineError):
    """Error raised when the embedding provider cannot produce a vector.

    Covers unreachable providers as well as malformed responses (empty or
    non-numeric vectors). Retrieval never turns this into an empty result.

    Attributes:
        message: Human-readable error message
        original_error: The underlying exception, if any
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """Create an embedding error with optional cause."""
        self.message = message
        self.original_error = original_error
        if original_error is not None:
            message = f"{message}\nOriginal error: {original_error}"
        super().__init__(message)


class GenerationUnavailable(RagLineError):
    """Error raised when the generation provider fails to produce text.

    Attributes:
        message: Human-readable error message
        original_error: The underlying exception, if any
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """Create a generation error with optional cause."""
        self.message = message
        self.original_error = original_error
        if original_error is not None:
            message = f"{message}\nOriginal error: {original_error}"
        super().__init__(message)


class CorpusError(RagLineError):
    """Exception raised when the corpus store cannot be read or written."""

    def __init__(self, location: str, message: str) -> None:
        """Create a corpus error for a store location."""
        self.location = location
        self.message = message
        super().__init__(f"Corpus error at {location}: {message}")


class IngestionError(RagLineError):
    """Exception raised when a document cannot be ingested.

    Attributes:
        source: The document source that failed
        message: Human-readable error message
    """

    def __init__(self, source: str, message: str) -> None:
        """Create an ingestion error for a document source."""
        self.source = source
        self.message = message
        super().__init__(f"Failed to ingest '{source}': {message}")
