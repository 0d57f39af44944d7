"""Request-scoped principal and the single role gate for core entry points."""
from dataclasses import dataclass, field
from functools import wraps
import uuid

from portal.core.errors import PermissionDenied
from portal.models.user import User, UserRole


@dataclass(frozen=True)
class RequestContext:
    principal: User
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @property
    def user_id(self) -> int:
        return self.principal.id

    @property
    def is_admin(self) -> bool:
        return self.principal.role == UserRole.ADMIN

    def has_role(self, *roles: UserRole) -> bool:
        return self.principal.role in roles


def requires_role(*roles: UserRole):
    """Guard a core function whose second positional argument is a ``RequestContext``.

    Every core operation is declared ``fn(db, ctx, ...)``.
    """

    allowed = frozenset(roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(db, ctx: RequestContext, *args, **kwargs):
            principal = getattr(ctx, "principal", None)
            if principal is None or not getattr(principal, "is_active", False):
                raise PermissionDenied("Account is inactive")
            if principal.role not in allowed:
                names = "/".join(sorted(role.value for role in allowed))
                raise PermissionDenied(f"{names.capitalize()} access required")
            return fn(db, ctx, *args, **kwargs)

        wrapper.required_roles = allowed
        return wrapper

    return decorator
