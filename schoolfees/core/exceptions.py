from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidAmountError(ServiceError):
    """Payment amount is zero or negative."""

    def __init__(self, message: str = "Payment amount must be positive") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NotAssignedError(ServiceError):
    """Student has no class, so no fee schedule applies."""

    def __init__(self, message: str = "Student is not assigned to a class") -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class NoScheduleError(ServiceError):
    def __init__(self, message: str = "No fee schedule defined for this class") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class StudentNotFoundError(ServiceError):
    def __init__(self, message: str = "Student not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class AlreadyMatchedError(ServiceError):
    def __init__(self, message: str = "Transaction already matched") -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class StorageError(ServiceError):
    """Persistence failure. Always surfaced to the direct caller."""

    def __init__(self, message: str = "Storage failure") -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)
