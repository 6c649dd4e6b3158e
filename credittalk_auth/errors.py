from fastapi import status


class ServiceError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation"
    default_message = "Invalid request"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"
    default_message = "Already registered"


class InvalidCodeError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "invalid_code"
    default_message = "Verification code is not valid."


class ExpiredCodeError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "expired_code"
    default_message = "Verification code has expired. Request a new one."


class AlreadyUsedError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    kind = "already_used"
    default_message = "Verification code has already been used."


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    default_message = "No matching user"


class DeliveryError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    kind = "delivery"
    default_message = "Failed to send verification SMS"


class StorageError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "storage"
    default_message = "Storage operation failed"
