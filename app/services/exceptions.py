"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class LookupFailure(ServiceError):
    """A catalog lookup could not be completed (transport, server or payload error)."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class SessionClosed(ServiceError):
    pass
