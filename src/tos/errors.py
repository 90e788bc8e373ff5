"""
Exception taxonomy shared by the stores, the offline cache and the API.

Each error carries the HTTP status and short title the API answers with, so
service code only raises and the HTTP layer only translates.
"""


class TosError(RuntimeError):
    """Base class for all pile-status errors."""

    status_code = 500
    title = "Internal Server Error"


class ValidationError(TosError):
    """Raised when input is malformed (bad value, bad parameter)."""

    status_code = 400
    title = "Validation Error"


class InvalidFieldError(ValidationError):
    """Raised when an update targets a field outside the mutable set."""

    title = "Invalid field"

    def __init__(self, field: str):
        super().__init__(f"Invalid field: {field}")
        self.field = field


class NotFoundError(TosError):
    """Raised when a record id does not reference an existing record."""

    status_code = 404
    title = "Record not found"

    def __init__(self, record_id: int):
        super().__init__(f"Record with ID {record_id} not found")
        self.record_id = record_id


class StoreUnavailableError(TosError):
    """Raised when the authoritative store or the remote API cannot be reached.

    Callers normally catch this and fall back to the local path.
    """

    status_code = 503
    title = "Service Unavailable"


class SyncConflictError(TosError):
    """Reserved: a remote value changed between a local edit and its sync.

    Never raised. Sync is last-write-wins, so conflicts are not detected.
    """

    status_code = 409
    title = "Sync conflict"
