from dataclasses import dataclass
from typing import Any, Dict, List

from django.core.paginator import EmptyPage, Paginator

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class PageResult:
    items: List[Any]
    page: int
    limit: int
    total: int
    total_pages: int = 0

    def meta(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


def paginate(queryset, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> PageResult:
    """Slice a queryset by 1-based page number. Pages past the end are empty."""
    page = max(int(page), 1)
    limit = min(max(int(limit), 1), MAX_PAGE_SIZE)
    paginator = Paginator(queryset, limit)
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []
    total = paginator.count
    return PageResult(
        items=items,
        page=page,
        limit=limit,
        total=total,
        # Paginator reports one (empty) page for an empty result
        total_pages=paginator.num_pages if total else 0,
    )
