"""
Error taxonomy shared by the services.

Each error knows the HTTP status it maps to; `main.py` renders them as
`{"message": ..., **details}`.
"""


class ShopError(Exception):
    status_code = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"message": self.message, **self.details}


class ValidationError(ShopError):
    status_code = 400


class NotFound(ShopError):
    status_code = 404


class Forbidden(ShopError):
    status_code = 403


class InsufficientStock(ShopError):
    status_code = 400

    def __init__(self, product_id: str, name: str, available: int):
        super().__init__(
            f"Insufficient stock for {name}. Available: {available}",
            productId=product_id,
            available=available,
        )
        self.product_id = product_id
        self.available = available


class Conflict(ShopError):
    status_code = 409


class ImageUploadError(ShopError):
    status_code = 502
