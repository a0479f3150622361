from enum import Enum


class Role(str, Enum):
    admin = "admin"
    staff = "staff"


ADMIN_ROLES = {Role.admin}
STOCK_ROLES = {Role.admin, Role.staff}


def is_admin(role: str) -> bool:
    return role in {r.value for r in ADMIN_ROLES}
