"""
Error taxonomy shared by the catalog and the lending ledger.

Every failure raised by a service carries a stable machine-readable ``kind``
and a human-readable ``message``. The API layer maps errors to HTTP responses
by looking the ``kind`` up in ``ERROR_STATUS``; it never inspects the class
hierarchy or the order of handlers, and it never echoes database error text.
"""

import logging

from django.core.exceptions import NON_FIELD_ERRORS
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.http import Http404
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class LendingError(Exception):
    kind = "internal_error"
    default_message = "An unexpected error occurred."

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def as_dict(self):
        payload = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(LendingError):
    kind = "validation_error"
    default_message = "Validation failed."

    @classmethod
    def from_django(cls, exc):
        """Collect every message of a Django ValidationError, keyed by field."""
        if hasattr(exc, "error_dict"):
            details = {
                "non_field_errors" if field == NON_FIELD_ERRORS else field: list(messages)
                for field, messages in exc.message_dict.items()
            }
        else:
            details = {"non_field_errors": list(exc.messages)}
        return cls(details=details)


class NotFoundError(LendingError):
    kind = "not_found"
    default_message = "Resource not found."


class ConflictError(LendingError):
    kind = "conflict"
    default_message = "The request conflicts with the current state."


class InternalError(LendingError):
    kind = "internal_error"


ERROR_STATUS = {
    ValidationError.kind: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError.kind: status.HTTP_404_NOT_FOUND,
    ConflictError.kind: status.HTTP_409_CONFLICT,
    InternalError.kind: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error):
    payload = error.as_dict()
    payload["timestamp"] = timezone.now().isoformat()
    return Response(
        payload,
        status=ERROR_STATUS.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def api_exception_handler(exc, context):
    """REST_FRAMEWORK["EXCEPTION_HANDLER"]: render LendingError by its kind."""
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError.from_django(exc)
    elif isinstance(exc, Http404):
        exc = NotFoundError()
    elif isinstance(exc, DatabaseError):
        # the raw database message stays in the log
        logger.exception(f"Database error in {context.get('view')}")
        exc = InternalError()

    if isinstance(exc, LendingError):
        if exc.kind == InternalError.kind:
            logger.error(f"Internal error in {context.get('view')}: {exc.message}")
        else:
            logger.warning(f"{exc.kind}: {exc.message}")
        return error_response(exc)

    return exception_handler(exc, context)
