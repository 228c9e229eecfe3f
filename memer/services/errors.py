"""
memer/services/errors.py
Typed failures raised by the economy services and rendered by the web layer
"""

from __future__ import annotations


class EconomyError(Exception):
    """Base class: every rejected action raises one of these before committing."""

    status = 400
    default_code = "EconomyError"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class ValidationError(EconomyError):
    """Malformed or out-of-range input."""

    status = 400
    default_code = "InvalidParameter"


class StateConflictError(EconomyError):
    """The request is well-formed but the ledger state forbids it."""

    status = 409
    default_code = "StateConflict"


class AccountBanned(StateConflictError):
    status = 403
    default_code = "AccountBanned"


class Unauthenticated(EconomyError):
    """No trusted identity header on the request."""

    status = 401
    default_code = "Unauthenticated"


class Forbidden(EconomyError):
    status = 403
    default_code = "Forbidden"


class NotFoundError(EconomyError):
    status = 404
    default_code = "NotFound"


class CooldownActive(EconomyError):
    status = 429
    default_code = "CooldownActive"

    def __init__(self, action: str, remaining_ms: int):
        minutes = -(-remaining_ms // 60000)
        super().__init__(f"{action} cooldown: {minutes} minute(s) remaining")
        self.action = action
        self.remaining_ms = remaining_ms

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["action"] = self.action
        data["remaining_ms"] = self.remaining_ms
        return data


def invalid_amount(message: str = "Amount must be positive") -> ValidationError:
    return ValidationError(message, "InvalidAmount")


def insufficient_funds(message: str = "Insufficient coins") -> StateConflictError:
    return StateConflictError(message, "InsufficientFunds")


def user_not_found(username: str) -> NotFoundError:
    return NotFoundError(f"User '{username}' not found", "UserNotFound")
