"""
Pagination for API list endpoints.

Every list endpoint accepts ``page`` and ``limit`` (``per_page`` is accepted
as an alias) and answers with ``{"results": [...], "pagination": {...}}``.
"""

from collections import OrderedDict

from django.core.paginator import InvalidPage

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsPagination(PageNumberPagination):
    """
    Page-number pagination bounded by ``max_page_size``.

    Out-of-range page numbers fall back to the last page instead of
    raising 404, and malformed values fall back to the defaults.
    """

    page_size = 20
    max_page_size = 100
    page_query_param = "page"
    page_size_query_param = "limit"
    page_size_alias = "per_page"

    def get_page_size(self, request):
        """Get the page size from ``limit``/``per_page`` with validation."""
        for param in (self.page_size_query_param, self.page_size_alias):
            value = request.query_params.get(param)
            if value is None:
                continue
            try:
                return max(1, min(int(value), self.max_page_size))
            except (TypeError, ValueError):
                return self.page_size
        return self.page_size

    def _get_page_number(self, request) -> int:
        try:
            return max(1, int(request.query_params.get(self.page_query_param, 1)))
        except (TypeError, ValueError):
            return 1

    def paginate_queryset(self, queryset, request, view=None):
        page_size = self.get_page_size(request)
        paginator = self.django_paginator_class(queryset, page_size)
        page_number = min(self._get_page_number(request), paginator.num_pages)

        try:
            self.page = paginator.page(page_number)
        except InvalidPage:
            self.page = paginator.page(1)

        self.request = request
        self.limit = page_size
        return list(self.page)

    def get_pagination_metadata(self):
        return OrderedDict(
            [
                ("page", self.page.number),
                ("limit", self.limit),
                ("total", self.page.paginator.count),
                ("pages", self.page.paginator.num_pages if self.page.paginator.count else 0),
                ("has_next", self.page.has_next()),
                ("has_previous", self.page.has_previous()),
            ]
        )

    def get_paginated_response(self, data):
        return Response(
            OrderedDict(
                [
                    ("results", data),
                    ("pagination", self.get_pagination_metadata()),
                ]
            )
        )

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "results": schema,
                "pagination": {"type": "object"},
            },
        }


def paginate(request, queryset, serializer_class, **serializer_kwargs):
    """
    Paginate a queryset from an ``@api_view`` function view.

    Usage:
        return paginate(request, queryset, CustomerListSerializer)
    """
    paginator = StandardResultsPagination()
    page = paginator.paginate_queryset(queryset, request)
    serializer = serializer_class(page, many=True, **serializer_kwargs)
    return paginator.get_paginated_response(serializer.data)
