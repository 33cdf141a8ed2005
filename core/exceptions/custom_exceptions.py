"""
Custom exceptions for the MeetPoll platform.

This module defines a hierarchy of custom exceptions used across the platform
to provide consistent error handling and reporting.
"""

from django.utils.translation import gettext_lazy as _
from rest_framework import status


class APIException(Exception):
    """Base exception for all API-related exceptions."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = _("An unexpected error occurred.")

    def __init__(self, message=None, status_code=None, errors=None):
        self.message = message or self.default_message
        if status_code:
            self.status_code = status_code
        self.errors = errors
        super().__init__(self.message)

    @property
    def error_code(self):
        return self.__class__.__name__

    def to_dict(self):
        """Convert exception to dictionary representation."""
        error_dict = {
            "message": str(self.message),
            "status_code": self.status_code,
            "code": self.error_code,
        }

        if self.errors:
            error_dict["errors"] = self.errors

        return error_dict


class ResourceNotFoundException(APIException):
    """Exception raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = _("The requested resource was not found.")


class ValidationException(APIException):
    """Exception raised for validation errors."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = _("Validation failed.")


class ExternalServiceException(APIException):
    """Exception raised when an external service fails."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = _("Error occurred with an external service.")


class CalendarSourceUnavailable(ExternalServiceException):
    """
    Raised when busy intervals could not be retrieved from a calendar.

    Callers recover by marking every slot in the batch unavailable.
    """

    default_message = _("Calendar events could not be retrieved.")


class StorageException(APIException):
    """Exception raised when a write could not be committed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = _("The response could not be saved. Please try again.")
