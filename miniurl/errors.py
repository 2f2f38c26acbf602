"""Error taxonomy for the shortener.

Every variant carries the HTTP status it maps to and the message sent to
the caller. Some 404 variants deliberately collapse distinct causes so that
responses never reveal whether a disabled or password-less link exists.
"""


class ServiceError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------- Authentication ----------

class AuthenticationRequired(ServiceError):
    status_code = 401
    message = "Authentication token required."


class InvalidToken(ServiceError):
    status_code = 403
    message = "Invalid or expired token."


class InvalidCredentials(ServiceError):
    # Same message for unknown email and wrong password
    status_code = 401
    message = "Invalid email or password"


# ---------- Conflicts ----------

class EmailTaken(ServiceError):
    status_code = 409
    message = "User with this email already exists."


class ShortCodeTaken(ServiceError):
    status_code = 409
    message = "Custom short code already in use."


# ---------- Lookups ----------

class LinkNotFound(ServiceError):
    status_code = 404
    message = "URL not found"


class NotFoundOrInactive(ServiceError):
    status_code = 404
    message = "URL not found or inactive"


class DetailsNotFoundOrInactive(NotFoundOrInactive):
    message = "URL not found or inactive."


class NotFoundOrUnprotected(ServiceError):
    """Unknown code, or a known link with no password gate."""

    status_code = 404
    message = "URL not found or does not require a password"


class NotOwner(ServiceError):
    status_code = 403
    message = "Access denied"


# ---------- Resolution ----------

class InvalidRedirectTarget(ServiceError):
    status_code = 400
    message = "Invalid URL for redirection"


class IncorrectPassword(ServiceError):
    status_code = 401
    message = "Incorrect password"


class TooManyRequests(ServiceError):
    status_code = 429
    message = "Too many requests, please try again after 15 minutes"


class InternalError(ServiceError):
    status_code = 500
    message = "Server error"
