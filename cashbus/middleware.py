"""
Custom middleware for CashBus.
"""
from typing import Optional
import threading
import uuid

from django.http import HttpRequest, HttpResponse
from django.utils.deprecation import MiddlewareMixin

# Thread-local storage for request_id
_request_id_storage = threading.local()


def get_request_id() -> Optional[str]:
    """Get the current request ID from thread-local storage."""
    return getattr(_request_id_storage, "request_id", None)


def set_request_id(request_id: Optional[str]) -> None:
    """Set the request ID in thread-local storage."""
    _request_id_storage.request_id = request_id


class RequestIdMiddleware(MiddlewareMixin):
    """
    Middleware to add request ID to each request.

    If X-Request-Id header exists, use it. Otherwise, generate a UUID.
    The request_id is attached to request.request_id for access in views
    and picked up by audit events created during the request.
    """

    def process_request(self, request: HttpRequest) -> None:
        request_id = request.META.get("HTTP_X_REQUEST_ID")

        if not request_id:
            request_id = str(uuid.uuid4())

        request.request_id = request_id
        set_request_id(request_id)

        return None

    def process_response(
        self, request: HttpRequest, response: HttpResponse
    ) -> HttpResponse:
        request_id = getattr(request, "request_id", None)
        if request_id:
            response["X-Request-Id"] = request_id

        set_request_id(None)

        return response


class StructuredLoggingMiddleware:
    """
    Middleware that injects request context into every log line.

    All logs generated while the request is handled carry request_id,
    user_id, method and path (see cashbus.logging_utils).
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        from cashbus.logging_utils import (
            clear_log_context,
            extract_request_context,
            set_log_context,
        )

        clear_log_context()
        set_log_context(**extract_request_context(request))

        try:
            return self.get_response(request)
        finally:
            clear_log_context()
