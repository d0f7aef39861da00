"""
Domain error taxonomy shared by the job, payment and invoice services.

Services raise these; the orchestration layer turns them into the
``{"success": false, "errorKind": ..., "message": ...}`` envelope.
"""
import logging

from rest_framework import status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    kind = 'ServiceError'
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_envelope(self):
        body = {'success': False, 'errorKind': self.kind, 'message': self.message}
        if self.context:
            body['details'] = self.context
        return body


class ValidationError(ServiceError):
    kind = 'ValidationError'


class InvalidStateTransition(ServiceError):
    kind = 'InvalidStateTransition'
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current, target, message=None):
        super().__init__(
            message or f"Cannot move from '{current}' to '{target}'",
            current=current,
            target=target,
        )
        self.current = current
        self.target = target


class StateConflict(ServiceError):
    """A concurrent write changed the record between read and commit."""
    kind = 'StateConflict'
    status_code = status.HTTP_409_CONFLICT


class SignatureMismatch(ServiceError):
    kind = 'SignatureMismatch'


class GatewayUnavailable(ServiceError):
    """Never reaches a caller: the online path converts it into the manual fallback."""
    kind = 'GatewayUnavailable'
    status_code = status.HTTP_502_BAD_GATEWAY


class DisputeOpen(ServiceError):
    kind = 'DisputeOpen'
    status_code = status.HTTP_409_CONFLICT


class NotAuthorized(ServiceError):
    kind = 'NotAuthorized'
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    kind = 'NotFound'
    status_code = status.HTTP_404_NOT_FOUND


def envelope_exception_handler(exc, context):
    """DRF exception handler that renders framework errors in the service envelope."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = response.data
    if isinstance(detail, dict) and 'detail' in detail:
        message = str(detail['detail'])
    else:
        message = 'Invalid request'
    body = {
        'success': False,
        'errorKind': exc.__class__.__name__,
        'message': message,
    }
    if response.status_code == status.HTTP_400_BAD_REQUEST:
        body['errorKind'] = 'ValidationError'
        body['details'] = detail
    response.data = body
    return response
