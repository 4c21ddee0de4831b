"""
Exception handler for standardized API error responses.

Every error body has the shape:
{
    "error": {
        "code": "validation_error",
        "message": "Invalid input data.",
        "details": {"field_name": ["error message"]},
        "request_id": "abc123"
    }
}
"""

from rest_framework.views import exception_handler
from rest_framework.exceptions import (
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    ParseError,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
import logging

from cashbus.exceptions import CashBusError

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Return the standard error envelope for DRF, Django and CashBus errors.

    CashBus domain errors are client errors (400) carrying their own code
    and details. Anything unrecognised is logged and returned as a 500.
    """
    request_id = None
    if context and "request" in context:
        request_id = getattr(context["request"], "request_id", None)

    if isinstance(exc, CashBusError):
        error_data = {
            "code": exc.code,
            "message": exc.message,
            "details": exc.details or None,
        }
        return _envelope(error_data, 400, request_id)

    response = exception_handler(exc, context)

    if response is None:
        if isinstance(exc, Http404):
            error_data = {
                "code": "not_found",
                "message": "The requested resource was not found.",
                "details": None,
            }
            return _envelope(error_data, 404, request_id)
        if isinstance(exc, DjangoPermissionDenied):
            error_data = {
                "code": "permission_denied",
                "message": "You do not have permission to perform this action.",
                "details": None,
            }
            return _envelope(error_data, 403, request_id)

        logger.error(
            f"Unhandled exception: {exc.__class__.__name__}: {str(exc)}",
            exc_info=True,
            extra={"request_id": request_id},
        )
        error_data = {
            "code": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "details": None,
        }
        return _envelope(error_data, 500, request_id)

    error_data = get_error_data(exc, response)
    if request_id:
        error_data["request_id"] = request_id
    response.data = {"error": error_data}
    return response


def _envelope(error_data, status_code, request_id):
    if request_id:
        error_data["request_id"] = request_id
    return Response({"error": error_data}, status=status_code)


def get_error_data(exc, response):
    """Map a DRF exception to code, message and details."""
    if isinstance(exc, ValidationError):
        error_code = "validation_error"
        error_message = "Invalid input data."
        details = (
            response.data
            if isinstance(response.data, dict)
            else {"non_field_errors": response.data}
        )

    elif isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        error_code = "authentication_failed"
        error_message = "Authentication credentials were not provided or are invalid."
        details = None

    elif isinstance(exc, PermissionDenied):
        error_code = "permission_denied"
        error_message = "You do not have permission to perform this action."
        details = {"detail": str(exc)} if str(exc) else None

    elif isinstance(exc, NotFound):
        error_code = "not_found"
        error_message = "The requested resource was not found."
        details = {"detail": str(exc)} if str(exc) else None

    elif isinstance(exc, ParseError):
        error_code = "parse_error"
        error_message = "Malformed request data."
        details = {"detail": str(exc)} if str(exc) else None

    elif isinstance(exc, MethodNotAllowed):
        error_code = "method_not_allowed"
        error_message = str(exc) if str(exc) else "Method not allowed."
        details = None

    else:
        error_code = "error"
        error_message = str(exc) if str(exc) else "An error occurred."
        details = response.data if isinstance(response.data, dict) else None

    return {
        "code": error_code,
        "message": error_message,
        "details": details,
    }
