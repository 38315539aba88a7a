"""
Role registry.

The role set is closed: every profile holds exactly one of these roles and
nothing in the system adds, removes or reorders them at runtime.
"""

from enum import Enum
from typing import Any, Dict, Tuple

from furioza.kernel.errors import ValidationError


class Role(str, Enum):
    """Forum roles, in canonical display order."""
    ADMIN = "admin"
    KAPITAN = "kapitan"
    TRENER = "trener"
    ZAWODNIK = "zawodnik"


DEFAULT_ROLE = Role.ZAWODNIK

ROLE_ORDER: Tuple[Role, ...] = (
    Role.ADMIN,
    Role.KAPITAN,
    Role.TRENER,
    Role.ZAWODNIK,
)

ROLE_LABELS: Dict[Role, str] = {
    Role.ADMIN: "Admin",
    Role.KAPITAN: "Kapitan",
    Role.TRENER: "Trener",
    Role.ZAWODNIK: "Zawodnik",
}

_VALUES = frozenset(role.value for role in ROLE_ORDER)


def is_valid_role(value: Any) -> bool:
    """Check whether value names one of the fixed roles."""
    if isinstance(value, Role):
        return True
    return isinstance(value, str) and value in _VALUES


def parse_role(value: Any) -> Role:
    """Coerce a raw value (enum or string) into a Role or raise ValidationError."""
    if not is_valid_role(value):
        raise ValidationError(f"Unknown role: {value!r}", field="role")
    return Role(value)


def display_order() -> Tuple[Role, ...]:
    return ROLE_ORDER


def role_label(role: Role) -> str:
    return ROLE_LABELS[parse_role(role)]
