"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class InvalidHoldingError(ValidationError):
    """Raised when a holding is structurally unusable (negative value, no account)."""

    def __init__(self, holding_id: str, reason: str):
        self.holding_id = holding_id
        super().__init__(f"Invalid holding {holding_id}: {reason}")
        self.code = "INVALID_HOLDING"


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class CacheWriteError(AppError):
    """Raised by persistent cache repositories when a write cannot be completed."""

    def __init__(self, kind: str, symbol: str, reason: str):
        super().__init__(
            f"Failed to persist {kind} for {symbol}: {reason}",
            code="CACHE_WRITE_FAILED",
        )
