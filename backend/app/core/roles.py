from typing import Literal

UserRole = Literal["admin", "operator"]

ADMIN_ROLE: UserRole = "admin"
OPERATOR_ROLE: UserRole = "operator"

ROLE_OPTIONS: list[dict[str, str]] = [
    {"value": ADMIN_ROLE, "label": "Admin"},
    {"value": OPERATOR_ROLE, "label": "Operatore"},
]


def is_valid_role(role: str | None) -> bool:
    return role in {ADMIN_ROLE, OPERATOR_ROLE}


def is_admin_role(role: str | None) -> bool:
    return role == ADMIN_ROLE


def normalize_role(role: str | None) -> UserRole:
    # exact match, same as is_admin_role; padded labels are not admins
    if role == ADMIN_ROLE:
        return ADMIN_ROLE
    return OPERATOR_ROLE
