"""
Typed failures raised by the auction core.

Every error carries a machine-readable ``kind`` and the ``params`` that were
interpolated into its message, so a presentation layer can format its own
text instead of parsing ours.
"""

from typing import Any


class AuctionError(Exception):
    """Base class for all auction core failures."""

    kind = "auction_error"
    template = "{message}"

    def __init__(self, message: str | None = None, **params: Any):
        self.params = params
        if message is None:
            message = self.template.format(**params)
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "params": self.params}


class RequirementError(AuctionError):
    """A required argument is missing (None)."""

    kind = "requirement"
    template = "{field} is not optional"


class EmptyValueError(AuctionError, ValueError):
    """A required argument is present but empty or blank."""

    kind = "empty_value"
    template = "{field} is empty"


class FormatError(AuctionError, ValueError):
    """An argument is present but malformed (bad e-mail, bad id, wrong type)."""

    kind = "format"


class NotFoundError(AuctionError):
    kind = "not_found"


class ConflictError(AuctionError):
    kind = "conflict"


class UnauthorizedError(AuctionError):
    kind = "unauthorized"


class TokenSignatureError(UnauthorizedError):
    kind = "token_signature"
    template = "invalid signature"


class TokenMalformedError(UnauthorizedError):
    kind = "token_malformed"
    template = "jwt malformed"


class TokenExpiredError(UnauthorizedError):
    kind = "token_expired"
    template = "jwt expired"


class BidRejectedError(AuctionError):
    """A bid does not beat the start price or the current leading amount."""

    kind = "bid_rejected"


# Constructors for the messages shared between services


def wrong_credentials() -> UnauthorizedError:
    return UnauthorizedError("wrong credentials")


def user_email_not_found(email: str) -> NotFoundError:
    return NotFoundError(f'user with email "{email}" doesn\'t exist', email=email)


def user_id_not_found(user_id: Any) -> NotFoundError:
    return NotFoundError(f'user with id "{user_id}" does not exist', id=str(user_id))


def item_not_found(item_id: Any) -> NotFoundError:
    return NotFoundError(f'item with id "{item_id}" doesn\'t exist', id=str(item_id))
