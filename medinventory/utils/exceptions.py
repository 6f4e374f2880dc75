"""Custom exception classes for the application."""


class BaseAppException(Exception):
    """Base exception class for all application exceptions."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentError(BaseAppException):
    """Raised when a caller passes an unsupported option or value."""
    pass


class InventoryAPIError(BaseAppException):
    """Raised when the medicine API returns an error."""
    pass


class AuthenticationError(BaseAppException):
    """Raised when the API rejects the session token."""
    pass


class ConfigurationError(BaseAppException):
    """Raised when there's a configuration error."""
    pass


class FeatureDisabledError(BaseAppException):
    """Raised when an optional capability is used while switched off."""
    pass


class ExportError(BaseAppException):
    """Raised when an export file cannot be produced."""
    pass
