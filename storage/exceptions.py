"""
Error taxonomy for the key/value API.

Every error is an ``APIException`` so that DRF's exception handler turns the
first one raised during a request into a status code and a ``{"detail": ...}``
body. Nothing below the views catches these.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class ValidationError(APIException):
    """Malformed or missing input. Nothing in the store was touched."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request."
    default_code = "invalid"


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class KeyNotFoundError(NotFoundError):
    """Raised by the store when a point lookup misses."""

    default_detail = "Key not found"
    default_code = "key_not_found"


class StoreError(APIException):
    """Any failure coming out of the underlying transactional store."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Store failure."
    default_code = "store_error"
