"""Exception hierarchy for filebox operations.

Each error carries the machine-readable ``code`` and the HTTP status the API
layer answers with. Engine code raises these; only ``filebox.main`` turns
them into responses.
"""


class FileboxError(Exception):
    """Base class for all filebox errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccessDeniedError(FileboxError):
    """A path resolves outside the sandbox root."""

    code = "ACCESS_DENIED"
    status_code = 403


class NotFoundError(FileboxError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(FileboxError):
    """The target name is already taken."""

    code = "CONFLICT"
    status_code = 409


class InvalidInputError(FileboxError):
    code = "INVALID_INPUT"
    status_code = 400


class UnsupportedError(FileboxError):
    """An optional capability (e.g. archive extraction) is not available."""

    code = "UNSUPPORTED"
    status_code = 501


class BatchOperationError(FileboxError):
    """Every unit of a multi-path batch failed."""

    code = "FAILURE"

    def __init__(self, message: str, failures: dict[str, FileboxError | Exception]):
        super().__init__(message)
        self.failures = failures
        statuses = {
            getattr(error, "status_code", 500) for error in failures.values()
        }
        self.status_code = statuses.pop() if len(statuses) == 1 else 500


class PartialFailureError(BatchOperationError):
    """Some units of a batch succeeded and some failed.

    Completed units are not rolled back; callers must re-list to learn the
    resulting state.
    """

    code = "PARTIAL_FAILURE"

    def __init__(
        self,
        message: str,
        failures: dict[str, FileboxError | Exception],
        succeeded: list[str],
    ):
        super().__init__(message, failures)
        self.succeeded = succeeded
        self.status_code = 500
