"""
Error taxonomy for the storefront API.

Every failure a resource handler can surface is one of these classes. The
HTTP layer renders them as {"error": message} with the attached status code.
"""


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(StorefrontError):
    status_code = 400


class Unauthorized(StorefrontError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Forbidden(StorefrontError):
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFound(StorefrontError):
    status_code = 404


class IdentityProviderError(StorefrontError):
    """The identity provider refused a credential (duplicate email, weak password)."""

    status_code = 400


class Timeout(StorefrontError):
    status_code = 504

    def __init__(self, message: str = "Upstream service timed out"):
        super().__init__(message)


class Unexpected(StorefrontError):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
