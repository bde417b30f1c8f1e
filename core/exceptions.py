"""
Custom exception hierarchy for storefront operations.

Exception Hierarchy:
    StorefrontError (base)
    ├── StoreError            - Hosted store returned an error (HTTP 500)
    ├── NotFoundError         - Lookup by id/slug matched no row (HTTP 404)
    ├── AuthenticationError   - No valid session (HTTP 401)
    └── AuthorizationError    - Session present, role insufficient (HTTP 401/403)

    ValidationError           - Input validation failed (HTTP 400)
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class StoreError(StorefrontError):
    """
    The hosted store rejected or failed a query.

    The store's own message is passed through verbatim to the caller.
    """

    def __init__(self, message: str, details: str = None, code: str = None, table: str = None):
        super().__init__(message, details)
        self.code = code
        self.table = table


class NotFoundError(StorefrontError):
    """Lookup by id or slug yielded no row."""

    status_code = 404

    def __init__(self, message: str = "Not found", details: str = None):
        super().__init__(message, details)


class AuthenticationError(StorefrontError):
    """No authenticated actor on the request."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: str = None):
        super().__init__(message, details)


class AuthorizationError(StorefrontError):
    """
    Actor is authenticated but its role does not allow the operation.

    Admin routes answer 401 to keep one wire shape for every rejection;
    role escalation and the analytics listing answer 403.
    """

    def __init__(self, message: str = "Forbidden", details: str = None, status_code: int = 403):
        super().__init__(message, details)
        self.status_code = status_code


class ValidationError(Exception):
    """
    Input validation failed.

    Used for validating request parameters and bodies before any store access.
    """

    status_code = 400

    def __init__(self, field: str, message: str, value: any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"
