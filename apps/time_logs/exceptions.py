"""
Error taxonomy for the time tracking core.

- NotFoundError: referenced time log does not exist
- ConflictError: a time log is already active for the user and task
- BadRequestError: invalid report range or pagination parameters
- StorageError: the database failed or timed out

NotFound, Conflict and BadRequest are caller-correctable and never retried
automatically. StorageError is generic; the caller decides whether to
retry the whole request after re-reading state.
"""


class TimeLogError(Exception):
    """Base class for time tracking errors."""

    kind = 'Error'
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def as_dict(self):
        """Structured failure payload for the API boundary."""
        return {'kind': self.kind, 'message': self.message}


class NotFoundError(TimeLogError):
    kind = 'NotFound'
    status_code = 404


class ConflictError(TimeLogError):
    kind = 'Conflict'
    status_code = 409


class BadRequestError(TimeLogError):
    kind = 'BadRequest'
    status_code = 400


class StorageError(TimeLogError):
    kind = 'StorageError'
    status_code = 503
