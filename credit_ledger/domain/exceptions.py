"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InputValidationError(DomainException):
    """Contract or movement parameters are malformed; nothing was mutated"""

    pass


class DataIntegrityError(DomainException):
    """Stored data cannot produce a valid result (e.g. a schedule with no payable day)"""

    pass


class ConcurrencyConflictError(DomainException):
    """Another recalculation of the same contract committed first"""

    pass


class ContractNotFoundError(DomainException):
    """Referenced loan contract does not exist"""

    pass


class MovementNotFoundError(DomainException):
    """Referenced movement does not exist"""

    pass


class ClientNotFoundError(DomainException):
    """Referenced client does not exist"""

    pass


class ActiveContractExistsError(DomainException):
    """Client already holds an active contract and simultaneous credits are disabled"""

    pass


class OverpaymentError(DomainException):
    """Deposit would take collected plus unconfirmed money above the contract total"""

    pass


class DuplicateMovementError(DomainException):
    """An equivalent deposit was registered moments ago"""

    pass


class OutsideBusinessHoursError(DomainException):
    """Deposit attempted outside the configured business-hours window"""

    pass
