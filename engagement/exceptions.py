# engagement/exceptions.py
"""
Typed failures raised by the engagement services.

Every domain rule violation is an EngagementError subclass carrying a stable
``code``; the transport layer maps codes to its own status scheme.
"""


class EngagementError(Exception):
    code = 'engagement_error'
    default_message = 'The operation could not be completed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {'success': False, 'code': self.code, 'message': self.message}


class NotFound(EngagementError):
    code = 'not_found'
    default_message = 'The referenced record does not exist.'


class Unauthenticated(EngagementError):
    code = 'unauthenticated'
    default_message = 'No verified principal was supplied.'


class Forbidden(EngagementError):
    code = 'forbidden'
    default_message = 'You are not allowed to act on this record.'


class Conflict(EngagementError):
    code = 'conflict'
    default_message = 'The record conflicts with existing data.'


class CapacityExceeded(EngagementError):
    code = 'capacity_exceeded'
    default_message = 'This opportunity has reached its capacity.'


class Expired(EngagementError):
    code = 'expired'
    default_message = 'This opportunity has already ended.'


class InvalidState(EngagementError):
    code = 'invalid_state'
    default_message = 'The operation is not valid for the current status.'


class InvalidTransition(EngagementError):
    code = 'invalid_transition'
    default_message = 'The requested status is not reachable from the current status.'


class ValidationFailed(EngagementError):
    code = 'validation_failed'
    default_message = 'The supplied values are invalid.'

    def __init__(self, message=None, errors=None):
        super().__init__(message)
        self.errors = errors or {}

    def as_dict(self):
        data = super().as_dict()
        if self.errors:
            data['errors'] = self.errors
        return data


class TransientFailure(EngagementError):
    """Persistence fault or lock timeout. Safe for the caller to retry."""
    code = 'transient_failure'
    default_message = 'The data store is temporarily unavailable. Please retry.'
