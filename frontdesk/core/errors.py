"""Error taxonomy shared by the scheduling core and the services.

Every rejected operation raises one of these. Routes translate them into
HTTP responses using ``status_code`` and ``detail``; nothing here retries.
"""

from typing import Any


class SchedulingError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def detail(self) -> Any:
        return self.message


class ValidationError(SchedulingError):
    """The caller sent a malformed value or range."""
    status_code = 400


class ConflictError(SchedulingError):
    """The world changed under the caller; re-fetch and retry."""
    status_code = 409


class NotFoundError(SchedulingError):
    status_code = 404


class IllegalTransitionError(SchedulingError):
    """A status machine refused the requested move."""
    status_code = 409

    def __init__(self, current_status: str, requested_status: str, allowed_transitions: list[str]):
        super().__init__(f'Cannot move from {current_status} to {requested_status}.')
        self.current_status = current_status
        self.requested_status = requested_status
        self.allowed_transitions = allowed_transitions

    @property
    def detail(self) -> Any:
        return {
            'message': self.message,
            'current_status': self.current_status,
            'allowed_transitions': self.allowed_transitions,
        }
