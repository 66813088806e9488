"""
API Exceptions - error classes and the project-wide DRF exception handler.

Every error response has the shape:
{
    "error": "Human-readable message",
    "error_code": "MACHINE_READABLE_CODE",
    "errors": [{"field": ..., "messages": [...]}]
}
"""

import logging
from typing import Dict

from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


# =============================================================================
# BASE EXCEPTIONS
# =============================================================================

class MarketplaceAPIException(APIException):
    """
    Base exception for marketplace API errors.

    Attributes:
        status_code: HTTP status code
        default_detail: Default error message
        default_code: Machine-readable error code
        extra_data: Additional data merged into the response body
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = _("An unexpected error occurred.")
    default_code = "ERROR"

    def __init__(self, detail: str = None, code: str = None, extra_data: Dict = None):
        self.error_code = code or self.default_code
        self.extra_data = extra_data or {}

        if detail is None:
            detail = str(self.default_detail)

        super().__init__(detail=detail, code=code)


class ConflictError(MarketplaceAPIException):
    """Raised when the request conflicts with the current state of a resource."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = _("The request conflicts with the current state of the resource.")
    default_code = "CONFLICT"


class InvalidStatusTransition(ConflictError):
    """Raised when a status change is not allowed from the current status."""

    default_detail = _("This status change is not allowed.")
    default_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str = None, target: str = None, **kwargs):
        detail = kwargs.pop('detail', None)
        if detail is None and current and target:
            detail = f"Cannot change status from '{current}' to '{target}'"
        super().__init__(detail=detail, **kwargs)


class PaymentFailedError(MarketplaceAPIException):
    """Raised when the payment processor rejects an operation."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("Payment failed.")
    default_code = "PAYMENT_FAILED"


class PaymentServiceUnavailable(MarketplaceAPIException):
    """Raised when payments are not configured on this deployment."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _("Payment processing is not available.")
    default_code = "PAYMENT_SERVICE_UNAVAILABLE"


# =============================================================================
# EXCEPTION HANDLER
# =============================================================================

def api_exception_handler(exc, context):
    """
    Reshape DRF error responses into {"error": ..., "error_code": ..., "errors": [...]}.

    Unhandled exceptions are logged and answered with a 500.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(
            f"Unhandled exception in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
        )
        return Response(
            {
                'error': 'An unexpected error occurred.',
                'error_code': 'INTERNAL_ERROR',
                'errors': [],
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    error_data = {
        'error': '',
        'error_code': 'ERROR',
        'errors': [],
    }

    if isinstance(exc, MarketplaceAPIException):
        error_data['error'] = str(exc.detail)
        error_data['error_code'] = exc.error_code
        error_data.update(exc.extra_data)

    elif isinstance(exc, ValidationError):
        error_data['error_code'] = 'VALIDATION_ERROR'
        if isinstance(exc.detail, dict):
            error_data['errors'] = [
                {'field': field, 'messages': [str(m) for m in msgs] if isinstance(msgs, list) else [str(msgs)]}
                for field, msgs in exc.detail.items()
            ]
            first = error_data['errors'][0] if error_data['errors'] else None
            if first and first['messages']:
                if first['field'] == 'non_field_errors':
                    error_data['error'] = first['messages'][0]
                else:
                    error_data['error'] = f"{first['field']}: {first['messages'][0]}"
            else:
                error_data['error'] = 'Validation failed.'
        elif isinstance(exc.detail, list):
            error_data['errors'] = [{'field': 'non_field_errors', 'messages': [str(e) for e in exc.detail]}]
            error_data['error'] = str(exc.detail[0]) if exc.detail else 'Validation failed.'
        else:
            error_data['error'] = str(exc.detail)

    else:
        error_data['error'] = str(exc.detail) if hasattr(exc, 'detail') else str(exc)
        error_data['error_code'] = getattr(exc, 'default_code', 'ERROR')

    response.data = error_data
    return response
