"""Domain-specific exceptions"""

from datetime import date
from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class RateNotConfiguredError(DomainException):
    """No rate configuration is in effect for the requested date"""

    def __init__(self, on_date: Optional[date] = None):
        self.on_date = on_date
        if on_date is None:
            message = "No current rate configuration"
        else:
            message = f"No rate configuration in effect on {on_date.isoformat()}"
        super().__init__(message)


class RateConfigurationNotFoundError(DomainException):
    """Rate configuration id does not exist"""

    pass


class RateConfigurationLockedError(DomainException):
    """Configuration has already started and can no longer change"""

    pass


class RateConfigurationConflictError(DomainException):
    """Another writer opened a configuration concurrently; the write was rolled back"""

    pass


class InvalidRateConfigurationError(DomainException):
    """Rate configuration draft failed validation"""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class InvalidPricingInputError(DomainException):
    """Recipient counts or renewal arguments are outside policy"""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class AccountNotFoundError(DomainException):
    pass


class InvoicingAPIError(DomainException):
    """Invoicing webhook rejected or never acknowledged line items"""

    pass
