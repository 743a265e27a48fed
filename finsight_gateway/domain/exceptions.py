"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidRecordError(DomainException):
    """Stored record cannot be normalized into a domain record"""

    pass


class InvalidPeriodError(DomainException):
    """Requested analysis window cannot be built"""

    pass
