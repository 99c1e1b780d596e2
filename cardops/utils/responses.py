"""
Utility functions for API responses
"""
from typing import Any, Optional, List, Dict
from cardops.schemas.common import PaginationMeta


def success_response(
    data: Any = None,
    message: Optional[str] = None
) -> Dict:
    """
    Build the standard success envelope

    Args:
        data: Response data
        message: Optional success message

    Returns:
        Dict with ``ok`` and, when given, ``message`` / ``data``
    """
    response = {"ok": True}

    if message:
        response["message"] = message

    if data is not None:
        response["data"] = data

    return response


def paginated_response(
    data: List[Any],
    page: int,
    per_page: int,
    total: int
) -> Dict:
    """
    Create paginated response

    Args:
        data: List of items
        page: Current page number
        per_page: Items per page
        total: Total number of items

    Returns:
        Dict with data and pagination meta
    """
    total_pages = (total + per_page - 1) // per_page  # Ceiling division

    meta = PaginationMeta(
        current_page=page,
        per_page=per_page,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1
    )

    return {
        "ok": True,
        "data": data,
        "meta": meta.model_dump()
    }
