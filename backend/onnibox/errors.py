"""
Domain errors raised by the services layer.

Routers let them propagate; ``main`` maps each one to a JSON response
with the status code declared on the class.
"""
from fastapi import status


class OnniBoxError(Exception):
    """Base class for business errors"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(OnniBoxError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id=None):
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class BusinessRuleError(OnniBoxError):
    """Input is well-formed but violates a business rule"""

    status_code = status.HTTP_400_BAD_REQUEST


class DayLockedError(OnniBoxError):
    """A write touches a day that is already financially closed"""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, day):
        from .utils.money import format_date_display

        super().__init__(
            f"Action blocked: day {format_date_display(day)} is already financially closed. "
            "Reopen the day or contact a manager."
        )
        self.day = day


class RecordLockedError(OnniBoxError):
    """The entry was individually checked (CLOSED) and must be reopened first"""

    status_code = status.HTTP_409_CONFLICT


class ConflictError(OnniBoxError):
    status_code = status.HTTP_409_CONFLICT
