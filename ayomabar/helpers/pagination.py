import math


def page_meta(total: int, page: int, limit: int) -> dict[str, int | bool]:
    """Build the pagination block returned next to list payloads.

    Args:
        total: Number of rows matching the filters.
        page: 1-based page number that was requested.
        limit: Page size.

    Returns:
        ``{total, page, limit, total_pages, has_next_page, has_previous_page}``.
    """
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_previous_page": page > 1,
    }
