"""Domain errors raised by the record and proving services.

The HTTP status each error maps to is carried on the class; ``taquero.main``
installs one exception handler that turns any of them into the
``{"success": false, "error": ...}`` envelope.
"""

from typing import List


class TaqueroError(Exception):
    """Base class for record service errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnknownModuleError(TaqueroError):
    """Raised when a request names a module that is not registered."""

    status_code = 404

    def __init__(self, module: str):
        self.module = module
        super().__init__(f"Unknown module: {module}")


class MissingRequiredFieldsError(TaqueroError):
    """Raised when a submitted row lacks one or more required fields."""

    status_code = 422

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__("Missing required fields")


class RecordNotFoundError(TaqueroError):
    """Raised when a delete or reset targets an identifier that does not exist."""

    status_code = 404

    def __init__(self, record_id: str, message: str = "Record not found"):
        self.record_id = record_id
        super().__init__(message)


class VersionConflictError(TaqueroError):
    """Raised when a compare-and-swap write loses against a concurrent writer."""

    status_code = 409

    def __init__(self, record_id: str, expected: int, current: int):
        self.record_id = record_id
        self.expected = expected
        self.current = current
        super().__init__(
            f"Version conflict on '{record_id}': expected {expected}, current {current}"
        )


class DuplicateRecordError(TaqueroError):
    """Raised when two writers append the same new identifier at once."""

    status_code = 409

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Record '{record_id}' was created by another writer")


class ProvenMethodLockedError(TaqueroError):
    """Raised when deleting a method that has already been proven."""

    status_code = 409

    def __init__(self, method_id: str):
        self.method_id = method_id
        super().__init__(f"Method '{method_id}' is proven and cannot be deleted")


class InvalidFieldError(TaqueroError):
    """Raised when a submitted field is present but cannot be used."""

    status_code = 422

    def __init__(self, field: str, message: str):
        self.fields = [field]
        super().__init__(message)


class UnknownActionError(TaqueroError):
    """Raised when a submission names an action the module does not support."""

    status_code = 400

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unknown action: {action}")
