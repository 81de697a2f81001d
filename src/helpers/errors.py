"""Exception types raised by the dashboard pipeline."""


class DashboardError(Exception):
    """Base class for all dashboard errors."""


class InitializationError(DashboardError):
    """Raised when startup cannot complete (ABI documents, initial price)."""


class BatchCallError(DashboardError):
    """Raised when a multicall batch cannot be used as a whole."""

    def __init__(self, message: str, *, expected: int | None = None, received: int | None = None):
        self.expected = expected
        self.received = received
        super().__init__(message)


class DecodeError(DashboardError):
    """Raised when a return payload does not match its schema."""

    def __init__(self, name: str, types: list[str], reason: str):
        self.name = name
        self.types = types
        self.reason = reason
        super().__init__(f"Cannot decode {name} as ({','.join(types)}): {reason}")


__all__ = [
    "BatchCallError",
    "DashboardError",
    "DecodeError",
    "InitializationError",
]
