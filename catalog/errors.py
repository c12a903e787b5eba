"""Errors raised while handling a product request.

Each error knows the status code, template and message it is rendered with,
so the request handler can turn any of them into a result without branching.
"""
from fastapi import status


class CatalogError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    template = "operation_not_executed.html"
    message = "Operation not executed"

    def __init__(self, message: str = None, template: str = None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        if template:
            self.template = template


class Unauthorized(CatalogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    template = "user/unauthorized_user.html"
    message = "Error: Unauthorized user"


class NotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND
    template = "products/product_not_found.html"
    message = "Product not found"


class Conflict(CatalogError):
    status_code = status.HTTP_409_CONFLICT
    template = "products/product_exists.html"
    message = "Product already exists!"


class InvalidSortOrder(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST
    template = "error_bad_request.html"
    message = "Invalid sort order"


class ValidationFailure(CatalogError):
    status_code = 422
    template = "products/error_create_product.html"
    message = "Validation exception"

    def __init__(self, message: str = None, template: str = None, errors=None):
        super().__init__(message, template)
        self.errors = errors or []


class ExecutionFailure(CatalogError):
    """A persistence statement failed to execute."""
