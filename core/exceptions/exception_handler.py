"""
Global exception handler for the MeetPoll platform.

This module provides a custom exception handler for DRF that handles
custom exceptions and provides consistent error responses.
"""

import logging
from typing import Any, Dict, Optional

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.utils import DatabaseError, IntegrityError
from django.http import Http404
from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, NotFound, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .custom_exceptions import APIException

logger = logging.getLogger(__name__)


def get_error_code(exception: Exception) -> str:
    """
    Get standardized error code from exception.

    Args:
        exception: The exception to get code for

    Returns:
        str: Standardized error code
    """
    if isinstance(exception, APIException):
        return exception.error_code
    elif isinstance(exception, ValidationError):
        return "validation_error"
    elif isinstance(exception, PermissionDenied):
        return "permission_denied"
    elif isinstance(exception, (Http404, NotFound, ObjectDoesNotExist)):
        return "not_found"
    elif isinstance(exception, IntegrityError):
        return "integrity_error"
    elif isinstance(exception, DatabaseError):
        return "database_error"
    elif isinstance(exception, NotAuthenticated):
        return "authentication_required"
    else:
        return (
            exception.__class__.__name__.lower()
            .replace("error", "")
            .replace("exception", "")
        )


def get_error_message(exception: Exception) -> str:
    """
    Get a user-facing error message for an exception.

    Args:
        exception: The exception

    Returns:
        str: Error message
    """
    if isinstance(exception, APIException):
        return str(exception.message)

    if hasattr(exception, "detail") and isinstance(exception.detail, str):
        return exception.detail

    if isinstance(exception, IntegrityError):
        return _("A conflict occurred with existing data.")
    elif isinstance(exception, DatabaseError):
        return _("A database error occurred. Please try again later.")
    elif isinstance(exception, (Http404, ObjectDoesNotExist)):
        return _("The requested resource was not found.")

    return _("An error occurred processing your request.")


def get_error_details(exception: Exception) -> Optional[Dict[str, Any]]:
    """
    Get detailed error information from exception.

    Args:
        exception: The exception

    Returns:
        Optional[Dict]: Error details if available
    """
    if isinstance(exception, APIException):
        return exception.errors

    if (
        isinstance(exception, ValidationError)
        and hasattr(exception, "detail")
        and not isinstance(exception.detail, str)
    ):
        if isinstance(exception.detail, list):
            return {"validation_errors": exception.detail}
        return exception.detail

    return None


def exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """
    Custom exception handler for DRF views.

    Handles both DRF and custom exceptions, providing consistent response format.

    Args:
        exc: The exception
        context: The exception context

    Returns:
        Response: Consistent error response
    """
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "message_dict"):
            exc = ValidationError(detail=exc.message_dict)
        else:
            exc = ValidationError(detail=exc.messages)

    error_code = get_error_code(exc)
    error_message = get_error_message(exc)
    error_details = get_error_details(exc)
    view = context.get("view")

    if isinstance(exc, APIException):
        if exc.status_code >= 500:
            logger.error(f"Exception: {error_code} - {error_message} (view: {view})")
        else:
            logger.warning(f"Exception: {error_code} - {error_message} (view: {view})")
        return Response(exc.to_dict(), status=exc.status_code)

    response = drf_exception_handler(exc, context)

    if response is not None:
        logger.warning(f"Exception: {error_code} - {error_message} (view: {view})")
        response.data = {
            "code": error_code,
            "message": str(error_message),
            "status_code": response.status_code,
            **({"errors": error_details} if error_details is not None else {}),
        }
        return response

    if isinstance(exc, IntegrityError):
        logger.error(f"Exception: {error_code} - {exc} (view: {view})")
        return Response(
            {
                "code": error_code,
                "message": str(error_message),
                "status_code": status.HTTP_409_CONFLICT,
            },
            status=status.HTTP_409_CONFLICT,
        )

    # Unhandled exceptions propagate to Django's 500 handling
    logger.exception(f"Unhandled exception in {view}", exc_info=exc)
    return None
