from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from meeting_booking.schemas.identity import Identity
from meeting_booking.utils.security import verify_access_token
from meeting_booking.utils.exceptions import UnauthorizedException, ForbiddenException

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Get Current Identity ─────────────────────────────────────────────────────
def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """
    Validate JWT Bearer token and return the caller's identity.
    Employees live in the directory service; the token claims are trusted as-is.
    Raises 401 if token is missing, invalid, or expired.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")

    payload = verify_access_token(credentials.credentials)
    employee_id = payload.get("sub")
    login_id: str | None = payload.get("login_id")

    if employee_id is None or not login_id:
        raise UnauthorizedException("Invalid token payload")
    try:
        employee_id = int(employee_id)
    except (TypeError, ValueError):
        raise UnauthorizedException("Invalid token payload")

    return Identity(id=employee_id, login_id=login_id, is_admin=bool(payload.get("is_admin")))


# ─── Admin Guard ──────────────────────────────────────────────────────────────
def get_admin_identity(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        raise ForbiddenException("Admin access required")
    return identity
