"""Error taxonomy shared by the stores, the cart engine and the HTTP layer.

Each error carries the HTTP status it maps to at the request boundary.
"""

from typing import List, Optional


class ShopError(Exception):
    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ValidationError(ShopError):
    status_code = 400


class DuplicateKeyError(ShopError):
    status_code = 400


class InvalidIdError(ShopError):
    status_code = 400


class InvalidQuantityError(ShopError):
    status_code = 400


class NotFoundError(ShopError):
    status_code = 404


class CartNotFoundError(NotFoundError):
    pass


class ProductNotFoundError(NotFoundError):
    pass


class ProductNotFoundInCartError(NotFoundError):
    pass
