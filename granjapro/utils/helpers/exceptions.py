"""Domain exceptions for GranjaPro.

Every error is raised at the point of detection and handled by the nearest
console call site, which shows the message and returns to the menu.
"""

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


class GranjaError(Exception):
    """Base class for all GranjaPro domain errors."""


class ValidationError(GranjaError):
    """Raised when input is malformed (blank, too short, out of range)."""


class AuthenticationError(GranjaError):
    """Raised when a login fails.

    Wrong name and wrong password share the same message so that the
    caller cannot learn which usernames exist.
    """

    def __init__(self, message: str = INVALID_CREDENTIALS_MESSAGE):
        super().__init__(message)


class AccountInactiveError(GranjaError):
    """Raised when valid credentials belong to a deactivated identity."""


class AuthorizationError(GranjaError):
    """Raised when the current session lacks the role an operation needs."""


class NotFoundError(GranjaError):
    """Raised when a referenced record or identity id does not exist."""


class DuplicateNameError(GranjaError):
    """Raised when an identity name is already taken."""


class InvalidSessionError(GranjaError):
    """Raised when a session is started with a missing or inactive identity."""


class DocumentDecodeError(GranjaError):
    """Raised when a stored document holds a value outside its closed set."""


class ConfigurationError(GranjaError):
    """Raised when configuration loading encounters invalid values."""


def validation_error_from(exc) -> ValidationError:
    """Turn a pydantic validation failure into a domain ValidationError."""
    errors = exc.errors()
    if not errors:
        return ValidationError(str(exc))
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", str(exc))
    return ValidationError(f"{location}: {message}" if location else message)
