from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    page_size = 25
    page_size_query_param = "page_size"
    max_page_size = 200

    def get_paginated_response(self, data):
        return Response({
            "meta": {
                "count": self.page.paginator.count,
                "page_size": self.get_page_size(self.request),
                "current": self.page.number,
                "total_pages": self.page.paginator.num_pages,
            },
            "results": data
        })


def _int_param(raw, default):
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def page_params(query_params):
    """
    Read 1-based (page, page_size) from query params.
    Accepts both `pageSize` and `page_size`; range checks happen in the service layer.
    """
    page = _int_param(query_params.get("page"), 1)
    size_raw = query_params.get("pageSize") or query_params.get("page_size")
    page_size = _int_param(size_raw, getattr(settings, "CONTENT_PAGE_SIZE", 9))
    return page, page_size


def page_response(content_page, data, **extra):
    """
    Same envelope as StandardResultsSetPagination for pages computed by services.
    """
    body = {
        "meta": {
            "count": content_page.total_count,
            "page_size": content_page.page_size,
            "current": content_page.number,
            "total_pages": content_page.total_pages,
        },
        "results": data,
    }
    body.update(extra)
    return Response(body)
