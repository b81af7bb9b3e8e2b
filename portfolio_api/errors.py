"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``portfolio_api.app`` maps each class to its status code
and renders a JSON envelope with the message.
"""

from __future__ import annotations


class PortfolioError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PortfolioError):
    status_code = 400
    default_message = "Invalid request"


class InvalidCredentials(ValidationError):
    default_message = "Invalid credentials"


class DuplicateEmail(ValidationError):
    default_message = "Email already registered"


class DuplicateWeek(ValidationError):
    default_message = "Week already has a progress update"


class Unauthorized(PortfolioError):
    status_code = 401
    default_message = "Invalid token"


class Forbidden(PortfolioError):
    status_code = 403
    default_message = "Access denied"


class NotFound(PortfolioError):
    status_code = 404
    default_message = "Not found"


class Conflict(PortfolioError):
    status_code = 409
    default_message = "Conflict"


class StaleDocumentError(Conflict):
    default_message = "Document was modified by another request"


class DuplicateKeyError(Conflict):
    default_message = "Duplicate key"
