"""Custom exceptions for the campus microgrid engine."""


class MicrogridError(Exception):
    """Base exception for microgrid errors."""
    pass


class ValidationError(MicrogridError):
    """Base exception for validation errors."""
    pass


class ValidationTypeError(ValidationError):
    """Exception raised for type validation errors."""
    pass


class ValidationRangeError(ValidationError):
    """Exception raised when an input is out of its accepted range."""
    pass


class ConfigurationError(MicrogridError):
    """Exception raised for configuration errors."""
    pass


class StoreError(MicrogridError):
    """Exception raised for failures of the external state store."""
    pass


class ExternalReadError(StoreError):
    """Exception raised when prior state cannot be read."""
    pass


class ExternalWriteError(StoreError):
    """Exception raised when a tick result cannot be persisted."""
    pass


class StoreTimeoutError(StoreError):
    """Exception raised when a store call exceeds its time budget."""
    pass


class AnalysisError(MicrogridError):
    """Exception raised for analysis errors."""
    pass
