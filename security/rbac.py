"""
Role-based access rules.

``permit`` is a pure function of (role, operation, resource owner(s), caller);
``authorize`` raises ``ForbiddenError`` on deny. ``require_roles`` is the
route-level guard used by blueprints.
"""
import enum
from functools import wraps
from flask import g

from models.user import Role
from utils.errors import AuthError, ForbiddenError


class Operation(str, enum.Enum):
    VENUE_CREATE = "venue:create"
    VENUE_UPDATE = "venue:update"
    VENUE_DELETE = "venue:delete"
    VENUE_LIST_MINE = "venue:list_mine"
    VENUE_LIST_PENDING = "venue:list_pending"
    VENUE_VIEW_UNPUBLISHED = "venue:view_unpublished"
    VENUE_APPROVE = "venue:approve"
    VENUE_REJECT = "venue:reject"
    RESERVATION_CREATE = "reservation:create"
    RESERVATION_CANCEL = "reservation:cancel"
    RESERVATION_RATE = "reservation:rate"
    RESERVATION_VIEW = "reservation:view"
    RESERVATION_COMPLETE = "reservation:complete"
    AUDIT_VIEW = "audit:view"


# operations any role may perform on a resource it owns
_OWNED = {
    Role.USER: frozenset({
        Operation.VENUE_UPDATE,
        Operation.VENUE_DELETE,
        Operation.VENUE_VIEW_UNPUBLISHED,
        Operation.RESERVATION_CANCEL,
        Operation.RESERVATION_RATE,
        Operation.RESERVATION_VIEW,
    }),
    Role.OWNER: frozenset({
        Operation.VENUE_UPDATE,
        Operation.VENUE_DELETE,
        Operation.VENUE_VIEW_UNPUBLISHED,
        Operation.RESERVATION_CANCEL,
        Operation.RESERVATION_VIEW,
    }),
    Role.ADMIN: frozenset(),
}

# operations a role may perform regardless of ownership
_UNCONDITIONAL = {
    Role.USER: frozenset({
        Operation.VENUE_CREATE,
        Operation.VENUE_LIST_MINE,
        Operation.RESERVATION_CREATE,
    }),
    Role.OWNER: frozenset({
        Operation.VENUE_CREATE,
        Operation.VENUE_LIST_MINE,
    }),
    Role.ADMIN: frozenset({
        Operation.VENUE_UPDATE,
        Operation.VENUE_DELETE,
        Operation.VENUE_LIST_MINE,
        Operation.VENUE_LIST_PENDING,
        Operation.VENUE_VIEW_UNPUBLISHED,
        Operation.VENUE_APPROVE,
        Operation.VENUE_REJECT,
        Operation.RESERVATION_CANCEL,
        Operation.RESERVATION_VIEW,
        Operation.RESERVATION_COMPLETE,
        Operation.AUDIT_VIEW,
    }),
}


def _owner_ids(resource_owner_id):
    if resource_owner_id is None:
        return frozenset()
    if isinstance(resource_owner_id, (set, frozenset, list, tuple)):
        return frozenset(i for i in resource_owner_id if i is not None)
    return frozenset({resource_owner_id})


def permit(role, operation, resource_owner_id=None, caller_id=None) -> bool:
    """
    True when ``role`` may perform ``operation``.

    ``resource_owner_id`` is a single user id or a collection of ids; any
    match with ``caller_id`` counts as ownership.
    """
    try:
        role = Role(role)
        operation = Operation(operation)
    except ValueError:
        return False

    if operation in _UNCONDITIONAL[role]:
        return True
    if operation in _OWNED[role]:
        return caller_id is not None and caller_id in _owner_ids(resource_owner_id)
    return False


def authorize(user, operation, resource_owner_id=None, message="Forbidden"):
    if user is None:
        raise AuthError("Authentication required")
    if not permit(user.role, operation, resource_owner_id, user.id):
        raise ForbiddenError(message)


def has_role(role: Role) -> bool:
    user = getattr(g, "user", None)
    if not user:
        return False
    return user.role == Role(role).value

def require_roles(*roles: Role):
    """
    Usage: @require_roles(Role.ADMIN)
    """
    allowed = {Role(r).value for r in roles}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                raise AuthError("Authentication required")

            if user.role not in allowed:
                raise ForbiddenError("Forbidden")

            return fn(*args, **kwargs)
        return wrapper
    return decorator
