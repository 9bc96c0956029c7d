"""
Error taxonomy shared by the service layer and the HTTP handlers.
"""


class ShopError(Exception):
    """Base error; carries the HTTP status it surfaces as."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ShopError):
    status_code = 404


class Malformed(ShopError):
    status_code = 400


class Unauthorized(ShopError):
    status_code = 401


class Conflict(ShopError):
    status_code = 409
