"""Failure taxonomy shared by every bounded context.

Command handlers raise these; the HTTP layer maps each ``kind`` to a status
code and an error tag in the response envelope. Field-level input problems
use Protean's own ``ValidationError`` (tagged ``ValidationError``, HTTP 400).
"""

from protean.exceptions import ObjectNotFoundError


class MarketplaceError(Exception):
    """Base class for domain failures that carry a kind tag and an HTTP status."""

    kind = "Fault"
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return self.message


class NotFound(MarketplaceError):
    kind = "NotFound"
    status_code = 404


class Forbidden(MarketplaceError):
    kind = "Forbidden"
    status_code = 403


class InvalidTransition(MarketplaceError):
    kind = "InvalidTransition"
    status_code = 409


class PreconditionFailed(MarketplaceError):
    kind = "PreconditionFailed"
    status_code = 422


class AuthenticationFailed(MarketplaceError):
    kind = "AuthenticationFailed"
    status_code = 401


def load(repository, identifier, label):
    """Fetch an aggregate by id, raising ``NotFound`` with a readable label."""
    try:
        return repository.get(identifier)
    except ObjectNotFoundError as exc:
        raise NotFound(f"{label} not found") from exc
