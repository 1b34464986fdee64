class IntakeError(Exception):
    """Base exception for the request tracker.

    ``status_code`` is the HTTP status the API layer answers with.
    """

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(IntakeError):
    """Raised when a request id does not exist."""

    status_code = 404

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Request '{request_id}' not found")


class IllegalTransitionError(IntakeError):
    """Raised when the target status is not reachable from the current one."""

    status_code = 400

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Cannot move request from '{from_status}' to '{to_status}'")


class ValidationError(IntakeError):
    """Raised when data accompanying an operation is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class PermissionDeniedError(IntakeError):
    """Raised when an actor's role may not perform the requested change."""

    status_code = 403

    def __init__(self, role: str, message: str):
        self.role = role
        super().__init__(message)


class ConflictError(IntakeError):
    """Raised when the stored request changed since it was read."""

    status_code = 409

    def __init__(self, request_id: str, expected_version: int, actual_version: int | None = None):
        self.request_id = request_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Request '{request_id}' was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )


class StorageError(IntakeError):
    """Raised when the underlying persistence layer fails."""

    status_code = 500
