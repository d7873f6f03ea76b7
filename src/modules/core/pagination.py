"""Page-number pagination with a sliding window of page links.

Out-of-range input is clamped instead of rejected: ``page=0`` serves
the first page, ``page=999`` the last one, and an invalid or
non-positive ``page_size`` falls back to the default (values above
``max_page_size`` are capped).  Listings therefore never 404 because a
filter shrank the result set under the client's feet.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from rest_framework.pagination import PageNumberPagination
from rest_framework.request import Request
from rest_framework.response import Response

PAGE_WINDOW = 10


class WindowedPageNumberPagination(PageNumberPagination):
    page_size_query_param = "page_size"
    max_page_size = 99

    def paginate_queryset(
        self, queryset: Sequence[Any], request: Request, view: Any = None
    ) -> List[Any]:
        self.request = request
        page_size = self.get_page_size(request)
        paginator = self.django_paginator_class(queryset, page_size)
        number = self._clamp_page(
            request.query_params.get(self.page_query_param), paginator.num_pages
        )
        self.page = paginator.page(number)
        return list(self.page)

    @staticmethod
    def _clamp_page(raw: str | None, total_pages: int) -> int:
        try:
            number = int(raw) if raw is not None else 1
        except (TypeError, ValueError):
            number = 1
        return min(max(number, 1), total_pages)

    def get_page_window(self) -> tuple[int, int]:
        current = self.page.number
        total_pages = self.page.paginator.num_pages
        start = ((current - 1) // PAGE_WINDOW) * PAGE_WINDOW + 1
        return start, min(start + PAGE_WINDOW - 1, total_pages)

    def get_paginated_response(self, data: List[Any]) -> Response:
        window_start, window_end = self.get_page_window()
        return Response(
            {
                "count": self.page.paginator.count,
                "page": self.page.number,
                "page_size": self.page.paginator.per_page,
                "total_pages": self.page.paginator.num_pages,
                "page_window_start": window_start,
                "page_window_end": window_end,
                "has_previous": self.page.has_previous(),
                "has_next": self.page.has_next(),
                "results": data,
            }
        )

    def get_paginated_response_schema(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        integer = {"type": "integer"}
        boolean = {"type": "boolean"}
        return {
            "type": "object",
            "required": ["count", "page", "total_pages", "results"],
            "properties": {
                "count": integer,
                "page": integer,
                "page_size": integer,
                "total_pages": integer,
                "page_window_start": integer,
                "page_window_end": integer,
                "has_previous": boolean,
                "has_next": boolean,
                "results": schema,
            },
        }
