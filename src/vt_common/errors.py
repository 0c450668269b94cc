"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Control surface auth
  2xxx: Account / balance
  3xxx: Market data
  4xxx: Trade request
  5xxx: Positions (spot + leverage)
  6xxx: Property market
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class AdminAuthError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Missing or invalid admin token", 401)


# --- 2xxx: Account ---

class InsufficientFundsError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required:.2f}, available {available:.2f}",
            422,
        )
        self.required = required
        self.available = available


class ProfileNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Profile not found for user {user_id}", 404)


# --- 3xxx: Market data ---

class UnknownSymbolError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(3001, f"Unknown symbol: {symbol}", 404)


class FeedError(AppError):
    """Price source could not deliver a usable quote set."""

    def __init__(self, message: str, code: int = 3100) -> None:
        super().__init__(code, message, 503)


class TransientFeedError(FeedError):
    """Timeout, rate limit or transport failure. Retryable."""

    def __init__(self, message: str, code: int = 3101) -> None:
        super().__init__(message, code)


class FeedValidationError(TransientFeedError):
    """Malformed or incomplete response. Treated like a transport failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 3102)


# --- 4xxx: Trade request ---

class InvalidAmountError(AppError):
    def __init__(self, amount: float) -> None:
        super().__init__(4001, f"Amount must be a positive number, got {amount}", 400)


# --- 5xxx: Positions ---

class InsufficientHoldingsError(AppError):
    def __init__(self, symbol: str, required: float, available: float) -> None:
        super().__init__(
            5001,
            f"Insufficient {symbol} holdings: required {required}, available {available}",
            422,
        )
        self.required = required
        self.available = available


class DuplicateLeveragePositionError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(
            5101,
            f"A leveraged {symbol} position is already open; close it first",
            409,
        )


class InvalidLeverageError(AppError):
    def __init__(self, leverage: float, minimum: int, maximum: int) -> None:
        super().__init__(
            5102, f"Leverage {leverage} out of range [{minimum}, {maximum}]", 400
        )


class LeveragePositionNotFoundError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(5103, f"No open leveraged {symbol} position", 404)


# --- 6xxx: Property market ---

class PropertyNotFoundError(AppError):
    def __init__(self, ref: str) -> None:
        super().__init__(6001, f"Property not found: {ref}", 404)


class PropertyAlreadyOwnedError(AppError):
    def __init__(self, property_type: str) -> None:
        super().__init__(6002, f"Property type already owned: {property_type}", 409)


class PropertyMarketLockedError(AppError):
    def __init__(self, volume: float, required: float) -> None:
        super().__init__(
            6003,
            f"Trading volume too low: {volume:.2f} of {required:.2f} required",
            422,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class PersistenceError(AppError):
    def __init__(self, detail: str = "Storage operation failed") -> None:
        super().__init__(9003, detail, 500)


class ConfigurationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9004, f"Configuration error: {detail}", 500)


class SchedulerNotRunningError(AppError):
    def __init__(self) -> None:
        super().__init__(9005, "Scheduler is not running", 409)
