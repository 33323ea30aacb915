"""Upload queue errors."""


class QueueError(Exception):
    """Base exception for upload queue operations."""


class InvalidTransitionError(QueueError):
    """Raised when an event is not legal for the current queue state."""


class TransferError(Exception):
    """Raised by transfer clients when a folder or file transfer fails."""
