from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES: Machine-readable constants for frontend switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR        = "VALIDATION_ERROR"
    INVALID_DATE            = "INVALID_DATE"
    INVALID_TIME            = "INVALID_TIME"
    INVALID_DATE_RANGE      = "INVALID_DATE_RANGE"
    BOOKING_ALREADY_STARTED = "BOOKING_ALREADY_STARTED"
    UNAUTHORIZED            = "UNAUTHORIZED"
    TOKEN_EXPIRED           = "TOKEN_EXPIRED"
    FORBIDDEN               = "FORBIDDEN"
    NOT_FOUND               = "NOT_FOUND"
    DUPLICATE_ENTRY         = "DUPLICATE_ENTRY"
    BOOKING_CONFLICT        = "BOOKING_CONFLICT"
    TRANSIENT_STORE_ERROR   = "TRANSIENT_STORE_ERROR"
    INTERNAL_SERVER_ERROR   = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all application-level errors.
    Carries a machine-readable error_code for frontend handling.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
    ):
        super().__init__(status_code=status_code, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })
        self.message    = message
        self.error_code = error_code
        self.details    = details
        self.field      = field


# ═══════════════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════════════

class ValidationException(AppException):
    def __init__(self, message: str, field: str | None = None, error_code: str = ErrorCode.VALIDATION_ERROR):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, error_code, field=field)


class InvalidDateException(ValidationException):
    def __init__(self, value=None, field: str | None = None):
        super().__init__(f"Invalid date: {value}. Use YYYY-MM-DD format", field, ErrorCode.INVALID_DATE)


class InvalidTimeException(ValidationException):
    def __init__(self, value=None, field: str | None = None):
        super().__init__(f"Invalid time: {value}. Use HH:MM format (e.g., 09:00)", field, ErrorCode.INVALID_TIME)


class InvalidRangeException(ValidationException):
    def __init__(self, message: str = "End date must be after start date"):
        super().__init__(message, "end_date", ErrorCode.INVALID_DATE_RANGE)


class BookingAlreadyStartedException(ValidationException):
    def __init__(self, action: str = "edit"):
        super().__init__(f"Cannot {action} past or ongoing bookings", error_code=ErrorCode.BOOKING_ALREADY_STARTED)


# ═══════════════════════════════════════════════════════════════════════════════
# AUTHORIZATION
# ═══════════════════════════════════════════════════════════════════════════════

class UnauthorizedException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


class TokenExpiredException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Access token has expired", ErrorCode.TOKEN_EXPIRED)


class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


# ═══════════════════════════════════════════════════════════════════════════════
# LOOKUP / CONFLICT / STORE
# ═══════════════════════════════════════════════════════════════════════════════

class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class BookingConflictException(AppException):
    """Raised when a request collides with approved bookings; details holds the conflict list."""
    def __init__(self, conflicts: list[dict], room_id: int | None = None):
        message = (
            f"Room {room_id} not available for the requested time"
            if room_id is not None else
            "Room is already booked for the requested time"
        )
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.BOOKING_CONFLICT, details=conflicts)
        self.conflicts = conflicts


class TransientStoreException(AppException):
    def __init__(self, message: str = "Booking store is temporarily unavailable. Please retry."):
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, message, ErrorCode.TRANSIENT_STORE_ERROR)
