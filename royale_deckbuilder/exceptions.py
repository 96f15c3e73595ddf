"""Custom exceptions for the Royale deckbuilder engine."""

from __future__ import annotations


class DeckBuilderError(Exception):
    """Base exception class for deck builder errors.

    Attributes:
        code (str): Error code for identifying the error type
        message (str): Descriptive error message
        details (dict): Additional error context and details
    """

    def __init__(self, message: str, code: str = "DECK_ERR", details: dict | None = None):
        """Initialize the base deck builder error.

        Args:
            message: Human-readable error description
            code: Error code for identification and handling
            details: Additional context about the error
        """
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Format the error message with code and details."""
        error_msg = f"[{self.code}] {self.message}"
        if self.details:
            error_msg += f"\nDetails: {self.details}"
        return error_msg


# Corpus / statistics exceptions
class EmptyCorpusError(DeckBuilderError):
    """Raised when deck statistics are requested for an empty reference corpus.

    No meaningful statistics model exists without at least one reference deck,
    so this is the one data precondition the engine refuses to degrade around.
    """

    def __init__(self, details: dict | None = None):
        """Initialize empty corpus error.

        Args:
            details: Additional context about the supplied corpus
        """
        message = "Reference deck corpus must be a non-empty sequence of decks"
        super().__init__(message, code="EMPTY_CORPUS", details=details)


# Static table exceptions
class StaticTableError(DeckBuilderError):
    """Base exception class for role/backup table loading errors."""

    def __init__(self, message: str, code: str = "TABLE_ERR", details: dict | None = None):
        super().__init__(message, code=code, details=details)


class StaticTableNotFoundError(StaticTableError):
    """Raised when a static table file does not exist at the expected location."""

    def __init__(self, path: str, details: dict | None = None):
        """Initialize table not found error.

        Args:
            path: Location that was searched for the table
            details: Additional context about the missing file
        """
        message = f"Static table not found: '{path}'"
        super().__init__(message, code="TABLE_MISSING", details=details)


class StaticTableFormatError(StaticTableError):
    """Raised when a static table file cannot be parsed or has the wrong shape."""

    def __init__(self, path: str, reason: str, details: dict | None = None):
        """Initialize table format error.

        Args:
            path: Location of the offending table
            reason: Short description of what was wrong
            details: Additional context about the parse failure
        """
        message = f"Invalid static table '{path}': {reason}"
        super().__init__(message, code="TABLE_FORMAT", details=details)


# Configuration exceptions
class ConfigurationError(DeckBuilderError):
    """Base exception class for invalid engine configuration supplied by a caller."""

    def __init__(self, message: str, code: str = "CONFIG_ERR", details: dict | None = None):
        super().__init__(message, code=code, details=details)


class InvalidWeightsError(ConfigurationError):
    """Raised when scoring weight overrides name unknown weights or non-numeric values."""

    def __init__(self, key: str, details: dict | None = None):
        message = f"Invalid scoring weight override: '{key}'"
        super().__init__(message, code="INVALID_WEIGHTS", details=details)


class InvalidBuilderOptionError(ConfigurationError):
    """Raised when beam search options are out of range (beam width, deck size, top-k)."""

    def __init__(self, option: str, value: object, details: dict | None = None):
        message = f"Invalid builder option {option}={value!r}"
        super().__init__(message, code="INVALID_OPTION", details=details)


class InvalidStrategyError(ConfigurationError):
    """Raised when an optimization strategy is neither a known strategy nor a callable."""

    def __init__(self, strategy: object, details: dict | None = None):
        message = f"Unsupported optimization strategy: {strategy!r}"
        super().__init__(message, code="INVALID_STRATEGY", details=details)
