# opsmith/operations/exceptions.py


from opsmith.exceptions.base import OpsmithError, NonRetryableError


class OperationKeyError(OpsmithError, NonRetryableError):
    """Raised when a category or operation name is malformed."""
