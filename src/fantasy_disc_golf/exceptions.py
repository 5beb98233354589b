class FdgException(Exception):
    """Base class for fantasy disc golf errors."""


class ConfigurationError(FdgException):
    """Raised when required configuration, schema or secrets are missing."""


class LockTimeoutError(FdgException):
    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Could not acquire league lock within {timeout:g}s")


class ExternalCallError(FdgException):
    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"{service}: {message}")
