"""
Expected failures of the identity service.

Every error carries the HTTP status it maps to and a short machine code, so
the transport layer can turn it into a response without inspecting types.
"""


class AuthServiceError(Exception):
    """Base error for expected failures."""

    status_code = 400
    code = "error"
    default_message = "Request failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidCredentials(AuthServiceError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid username or password"


class AccountDisabled(AuthServiceError):
    status_code = 401
    code = "account_disabled"
    default_message = "User account is disabled"


class InvalidToken(AuthServiceError):
    status_code = 401
    code = "invalid_token"
    default_message = "Could not validate credentials"


class DuplicateUsername(AuthServiceError):
    status_code = 409
    code = "duplicate_username"
    default_message = "Username is already taken!"


class DuplicateEmail(AuthServiceError):
    status_code = 409
    code = "duplicate_email"
    default_message = "Email is already in use!"


class NotFound(AuthServiceError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class PrincipalNotFound(NotFound):
    def __init__(self, key):
        super().__init__(f"User not found: {key}")
        self.key = key


class RoleNotFound(NotFound):
    def __init__(self, role_name):
        super().__init__(f"Role not found: {role_name}")
        self.role_name = role_name


class InvalidRoleName(AuthServiceError):
    status_code = 400
    code = "invalid_role_name"

    def __init__(self, role_name: str):
        super().__init__(f"Unknown role name: {role_name}")
        self.role_name = role_name


class Forbidden(AuthServiceError):
    status_code = 403
    code = "forbidden"
    default_message = "Access denied"
