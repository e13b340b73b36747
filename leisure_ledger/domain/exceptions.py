"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidConfigError(DomainException):
    """Config value outside its allowed range"""

    pass


class LoanRejectedError(DomainException):
    """Loan request violates the loan policy"""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class InvalidSessionTransitionError(DomainException):
    """Session operation not allowed from the current mode"""

    pass


class SessionActiveError(InvalidSessionTransitionError):
    """A session is already running"""

    pass


class NoActiveSessionError(InvalidSessionTransitionError):
    """Stop requested while idle"""

    pass


class InvalidLeisureRequestError(DomainException):
    """Requested leisure minutes are below the minimum or above what is available"""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class HistoryLockedError(DomainException):
    """History cannot be cleared while study time is owed"""

    pass


class CorruptSnapshotError(DomainException):
    """Persisted session snapshot is missing fields or malformed"""

    pass
