from typing import Any


# ─── Envelope Helpers ─────────────────────────────────────────────────────────
def success_response(message: str, data: Any = None, **extra) -> dict:
    """Return a standardized success dict (used in route handlers)."""
    body = {"success": True, "message": message, "data": data}
    body.update(extra)
    return body


def paginated_response(
    message: str,
    data: list,
    total: int,
    page: int,
    limit: int,
) -> dict:
    """Return a standardized paginated dict."""
    total_pages = (total + limit - 1) // limit if limit > 0 else 0
    return {
        "success": True,
        "message": message,
        "data": data,
        "meta": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        }
    }
