"""
Typed errors raised by the kernel, engines and orchestration layers.

Every error carries a stable ``code`` so the HTTP layer can map it onto a
status code and the standard ``ErrorResponse`` body without string matching.
"""

from typing import Optional


class FuriozaError(Exception):
    """Base class for all recoverable domain errors."""

    code = "error"

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class PermissionDenied(FuriozaError):
    """Actor lacks the permission, is banned, or hit a self-protection rule."""

    code = "permission_denied"

    def __init__(self, message: str, *, reason: str = "missing_permission", permission: Optional[str] = None):
        super().__init__(message)
        self.reason = reason
        self.permission = permission


class CooldownActive(FuriozaError):
    """Self-service mutation blocked until the cooldown window passes."""

    code = "cooldown_active"

    def __init__(self, field: str, days_remaining: int):
        super().__init__(
            f"{field} can be changed again in {days_remaining} day(s)",
            field=field,
        )
        self.days_remaining = days_remaining


class InvalidState(FuriozaError):
    """Action is incompatible with the current state of the entity."""

    code = "invalid_state"


class NotFound(FuriozaError):
    """Referenced entity does not exist."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: object = None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(FuriozaError):
    """Malformed input at the boundary."""

    code = "validation_error"
