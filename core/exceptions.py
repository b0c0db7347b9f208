import functools

from django.db import DatabaseError
from loguru import logger


class TeamServiceError(Exception):
    """Base class for every failure a team/membership operation can report."""
    code = 'error'
    status_code = 500
    default_message = 'Unexpected error.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {"success": False, "code": self.code, "message": self.message}


class NotFound(TeamServiceError):
    # Team, user or membership missing or not in the required state
    code = 'not_found'
    status_code = 404
    default_message = 'Resource not found.'


class Conflict(TeamServiceError):
    # Operation would break a state invariant
    code = 'conflict'
    status_code = 409
    default_message = 'Operation conflicts with the current state.'


class PersistenceError(TeamServiceError):
    code = 'persistence_error'
    status_code = 500
    default_message = 'The store could not complete the operation.'


def normalize_store_errors(func):
    """
    Wrap a service function so raw store failures never leak to the caller.

    Domain errors pass through untouched, any ``DatabaseError`` (integrity,
    operational, timeouts) is logged and re-raised as ``PersistenceError``.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TeamServiceError:
            raise
        except DatabaseError as exc:
            logger.exception(f"Store failure in {func.__name__}: {exc}")
            raise PersistenceError() from exc
    return wrapper
