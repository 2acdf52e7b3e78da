"""
Pagination Utility Module

Document store queries return whole result sets; listing endpoints filter
in process and slice a page out of the result here.
"""
from typing import List, Any

from careerguide.core.config import settings


def paginate(items: List[Any], page: int = 1, limit: int = 20) -> dict:
    """
    Slice one page out of a fully materialized list.

    Args:
        items: All matching items, already ordered
        page: Page number (1-indexed)
        limit: Items per page (capped at MAX_PAGE_SIZE)

    Returns:
        Dictionary with items and pagination metadata
    """
    page = max(1, page)
    limit = max(1, min(settings.MAX_PAGE_SIZE, limit))

    total = len(items)
    total_pages = (total + limit - 1) // limit if total > 0 else 1
    offset = (page - 1) * limit

    return {
        "items": items[offset:offset + limit],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrevious": page > 1,
        },
    }
