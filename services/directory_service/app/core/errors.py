"""Error taxonomy for the directory service.

Two families live here. ``StorageError`` and its subclasses are raised by the
data-access layer and never leave the procedure layer. ``ProcedureError`` and
its subclasses are what remote callers see: each carries a stable ``code``,
the HTTP status used by the transport, and a human-readable message.
"""


class StorageError(Exception):
    """Unclassified failure talking to the relational store."""


class DuplicateRollNumberError(StorageError):
    """The unique constraint on ``roll_number`` rejected a write."""


class StoreUnavailableError(StorageError):
    """No database is configured, so writes cannot be performed."""


class ProcedureError(Exception):
    code = "INTERNAL_SERVER_ERROR"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(ProcedureError):
    code = "BAD_REQUEST"
    http_status = 400


class ForbiddenError(ProcedureError):
    code = "FORBIDDEN"
    http_status = 403


class NotFoundError(ProcedureError):
    code = "NOT_FOUND"
    http_status = 404


class InternalError(ProcedureError):
    code = "INTERNAL_SERVER_ERROR"
    http_status = 500


class MethodNotSupportedError(ProcedureError):
    code = "METHOD_NOT_SUPPORTED"
    http_status = 405
