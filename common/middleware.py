"""
Middleware: request logging.
"""
import time
import logging
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(MiddlewareMixin):
    def process_request(self, request):
        request._start_time = time.time()
        logger.debug("REQ START %s %s", request.method, request.get_full_path())

    def process_response(self, request, response):
        duration = (time.time() - getattr(request, "_start_time", time.time())) * 1000.0
        user = getattr(request, "user", None)
        user_id = user.pk if user is not None and user.is_authenticated else "-"
        logger.debug(
            "REQ END %s %s %s user=%s %.2fms",
            request.method, request.get_full_path(), response.status_code, user_id, duration,
        )
        return response
