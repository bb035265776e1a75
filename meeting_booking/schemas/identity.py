from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """Verified caller, resolved once at the HTTP boundary and passed down unchanged."""
    id:       int
    login_id: str
    is_admin: bool = False
