# Overview: Domain error taxonomy shared by services and routes.

"""
Every error carries the HTTP status the API answers with.

Services raise these; routes translate them into {"error": message}
responses. Anything that is not a PdvError is an internal failure and is
answered with a generic 500 after being logged.
"""


class PdvError(Exception):
    """Base class for errors that map onto an HTTP status."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(PdvError, ValueError):
    """400-level input problem."""
    status_code = 400


class InvalidCredentials(PdvError):
    """Unknown username or wrong password. Message never says which."""
    status_code = 401


class SessionInvalid(PdvError):
    status_code = 401


class SessionExpired(SessionInvalid):
    status_code = 401


class AccountDisabled(PdvError):
    status_code = 403


class Forbidden(PdvError):
    """Missing permission or an operation on the master role."""
    status_code = 403


class NotFound(PdvError):
    status_code = 404


class SaleError(PdvError):
    """Business rule conflict on a sale (e.g. editing a cancelled sale)."""
    status_code = 409


class PersistenceError(PdvError):
    """Storage layer failure. Not retried; surfaced as an opaque 500."""
    status_code = 500
