"""Core custom exceptions for the application."""


class PipelineError(Exception):
    """Base exception for report pipeline errors (processing, rendering, packaging)."""


class ConfigurationError(PipelineError):
    """Exception for configuration-related errors (e.g., unknown page size, invalid settings)."""
