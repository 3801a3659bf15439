"""
Error taxonomy

Every error a handler can surface maps to one of these classes. The message
is what the client sees, so it must never carry driver or internal detail.
"""

from typing import Optional


class ShopError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShopError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(ShopError):
    status_code = 401
    default_message = "Unauthorized"


class ConflictError(ShopError):
    status_code = 409
    default_message = "Conflict"


class StorageError(ShopError):
    status_code = 500
    default_message = "Storage failure"
