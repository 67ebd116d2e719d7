class BehaviorAnalyzerError(Exception):
    """Base class of all errors raised by the behavior analyzer."""


class EmptyBufferError(BehaviorAnalyzerError):
    """Raised when a record is requested from an empty time window buffer."""


class NonMonotonicAppendError(BehaviorAnalyzerError):
    """Raised when a record older than the newest buffered record is appended."""


class InsufficientHistoryError(BehaviorAnalyzerError):
    """Raised when the snapshot cannot provide enough synchronized samples (yet)."""


class MissingSeedDataError(BehaviorAnalyzerError):
    """Raised when plan, pose or acceleration is missing at the logical timestamp."""
