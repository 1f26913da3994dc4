import logging

from rest_framework import exceptions, status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """
    Base class for errors raised by the service layer.
    Views never catch these; custom_exception_handler turns them into responses.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "error"
    default_message = "Request could not be processed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"
    default_message = "Not found."


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "invalid"
    default_message = "Invalid input."


class StorageError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = "storage_error"
    default_message = "File upload failed."


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"
    default_message = "Conflicting update."


class AuthenticationRequired(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "not_authenticated"
    default_message = "Authentication credentials were not provided."


class PermissionDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "permission_denied"
    default_message = "You do not have permission to perform this action."


def _as_api_exception(exc: ServiceError) -> exceptions.APIException:
    if isinstance(exc, AuthenticationRequired):
        return exceptions.NotAuthenticated(detail=exc.message, code=exc.default_code)
    api_exc = exceptions.APIException(detail=exc.message, code=exc.default_code)
    api_exc.status_code = exc.status_code
    return api_exc


def custom_exception_handler(exc, context):
    """
    Attach status code and a machine-friendly error field to responses.
    """
    if isinstance(exc, ServiceError):
        logger.info("%s in %s: %s", type(exc).__name__, context.get("view").__class__.__name__, exc.message)
        exc = _as_api_exception(exc)
    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(response.data, dict):
            response.data.setdefault("status_code", response.status_code)
            response.data["success"] = False
            if "detail" in response.data:
                response.data["error"] = str(response.data["detail"])
    return response
