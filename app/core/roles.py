from typing import List, Optional

from app.core.exceptions import InsufficientPermissions, InvalidRoleSpec, Unauthenticated
from app.models.user import User, UserRole


def parse_role_spec(spec: str) -> List[UserRole]:
    """Split a pipe-delimited role spec ("seller|admin"), dropping unknown tokens."""
    roles: List[UserRole] = []
    for token in spec.split("|"):
        try:
            role = UserRole(token.strip())
        except ValueError:
            continue
        if role not in roles:
            roles.append(role)
    return roles


def authorize(principal: Optional[User], spec: str) -> User:
    """Return the principal when its role is accepted by ``spec``, raise otherwise."""
    if principal is None:
        raise Unauthenticated()

    single = "|" not in spec
    accepted = parse_role_spec(spec)
    if not accepted:
        if single:
            raise InvalidRoleSpec("Invalid role specified", code="INVALID_ROLE")
        raise InvalidRoleSpec()

    if principal.role not in accepted:
        labels = ", ".join(role.label for role in accepted)
        if single:
            message = f"Insufficient permissions. Required role: {labels}"
        else:
            message = f"Insufficient permissions. Required one of: {labels}"
        raise InsufficientPermissions(message)

    return principal
