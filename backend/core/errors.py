"""
Error taxonomy for the admin panel.
Every error carries the HTTP status it is rendered with; main.py turns them
into a {success: false, message} payload.
"""
from pydantic import ValidationError


class AdminPanelError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(AdminPanelError):
    """Malformed query string or body."""
    status_code = 400


class InvalidRecordError(AdminPanelError):
    """Payload or identifier rejected before reaching the database."""
    status_code = 400


class RecordWriteError(AdminPanelError):
    """Driver error raised by an insert, update or delete."""
    status_code = 400


class AuthenticationError(AdminPanelError):
    status_code = 401


class ForbiddenError(AdminPanelError):
    status_code = 403


class TableNotFoundError(AdminPanelError):
    status_code = 404

    def __init__(self, table: str):
        super().__init__(f'Table "{table}" not found')
        self.table = table


class RecordNotFoundError(AdminPanelError):
    status_code = 404

    def __init__(self, message: str = "Record not found"):
        super().__init__(message)


class UnsupportedDialectError(AdminPanelError):
    status_code = 500


class IntrospectionError(AdminPanelError):
    status_code = 500


class QueryError(AdminPanelError):
    """Driver error raised by a read."""
    status_code = 500


def first_error_message(exc: ValidationError) -> str:
    """Return the first human-readable message of a pydantic ValidationError."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    msg = errors[0].get("msg", "Invalid request")
    # Custom validators surface as "Value error, <message>"
    return msg.removeprefix("Value error, ")
