"""
Exception types raised by the contract validator.
"""


class ContractValidatorError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(ContractValidatorError):
    """Raised when a contracts file or telemetry configuration is missing or malformed."""


class FetchError(ContractValidatorError):
    """Raised by a provider when spans or metrics cannot be retrieved."""

    def __init__(self, provider_name: str, message: str):
        super().__init__(message)
        self.provider_name = provider_name


class ContractAssertionError(ContractValidatorError, AssertionError):
    """Raised by test helpers when a contract does not pass."""
