"""
Custom exception hierarchy for the message ticker.

Provides specific exception types for different error categories,
enabling better error handling and debugging.
"""


class TickerError(Exception):
    """Base exception for all ticker errors."""

    def __init__(self, message: str, context: dict = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(TickerError):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str, field: str = None, value=None, context: dict = None):
        """
        Initialize config error.

        Args:
            message: Error message
            field: Optional field name that caused the error
            value: Optional offending value
            context: Optional context dictionary
        """
        if field:
            context = context or {}
            context['field'] = field
            context['value'] = value
        super().__init__(message, context)
        self.field = field
        self.value = value


class FormatContractError(TickerError):
    """
    Raised when a message formatter returns the wrong shape.

    With categorisation enabled the formatter must return a
    ``(category, text)`` pair, otherwise a plain string.
    """

    def __init__(self, message: str, record=None, output=None, context: dict = None):
        context = context or {}
        context['output_type'] = type(output).__name__
        super().__init__(message, context)
        self.record = record
        self.output = output


class SourceError(TickerError):
    """Exception raised when a data source fails to load."""

    def __init__(self, message: str, source_id: str = None, context: dict = None):
        """
        Initialize source error.

        Args:
            message: Error message
            source_id: Optional identifier of the failing source
            context: Optional context dictionary
        """
        if source_id:
            context = context or {}
            context['source_id'] = source_id
        super().__init__(message, context)
        self.source_id = source_id
