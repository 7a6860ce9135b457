from fastapi import status


class EquipmentError(Exception):
    """Base for repository errors. `message` is shown to users verbatim."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class Unauthorized(EquipmentError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", status_code: int | None = None):
        super().__init__(message, status_code)


class NotFound(EquipmentError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageFailure(EquipmentError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ValidationGap(EquipmentError):
    status_code = status.HTTP_400_BAD_REQUEST
