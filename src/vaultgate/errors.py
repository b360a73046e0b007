"""Error taxonomy for deposit address allocation.

Every error propagates to the caller. Nothing in the core retries or rolls
back on its own.
"""

from typing import Optional


class VaultgateError(Exception):
    """Base class for all allocation errors."""
    pass


class ConfigurationError(VaultgateError):
    """Bad or missing required configuration (encryption key, addressing scheme)."""
    pass


class UnsupportedStrategyError(ConfigurationError):
    """Network strategy value outside the known set of allocation strategies."""

    def __init__(self, strategy: object, network_code: str = ""):
        self.strategy = strategy
        self.network_code = network_code
        where = f" on network '{network_code}'" if network_code else ""
        super().__init__(f"Unsupported allocation strategy {strategy!r}{where}")


class NotFoundError(VaultgateError):
    """Network or master wallet record absent when required."""
    pass


class AllocationError(VaultgateError):
    """Counter increment affected no rows although the wallet record exists."""
    pass


class EncryptionError(VaultgateError):
    """Envelope could not be authenticated or decoded."""
    pass


class ExternalServiceError(VaultgateError):
    """Non-success or malformed response from the Key or Notification Service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
