"""Authorization policy: one decision point for every operation.

Each operation declares the minimum role it needs and whether the
actor must also own the target. Co-managers bypass ownership.
"""

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Protocol

from server.apps.accounts.models import Role
from server.common.exceptions import AuthenticationError, AuthorizationError

if TYPE_CHECKING:
    from server.apps.accounts.models import User

logger = logging.getLogger(__name__)

_ROLE_RANK: Final = {
    Role.VISITOR: 0,
    Role.MEMBER: 1,
    Role.CO_MANAGER: 2,
}


class Owned(Protocol):
    """Anything with an owner."""

    @property
    def owner_id(self) -> int | None: ...  # noqa: D102


@dataclass(frozen=True)
class Actor:
    """Authenticated identity acting on the system."""

    id: int
    role: Role

    @classmethod
    def from_user(cls, user: 'User') -> 'Actor':
        """Build the actor for a loaded user.

        Args:
            user: Authenticated user.

        Returns:
            Actor carrying the user's id and stored role.
        """
        return cls(id=user.pk, role=Role(user.role))

    @property
    def is_co_manager(self) -> bool:
        """Whether the actor holds the highest role."""
        return self.role == Role.CO_MANAGER


class Operation(enum.Enum):
    """Every gated operation."""

    DEPARTMENT_READ = 'department.read'
    DEPARTMENT_CREATE = 'department.create'
    DEPARTMENT_UPDATE = 'department.update'
    DEPARTMENT_DELETE = 'department.delete'

    FOLDER_READ = 'folder.read'
    FOLDER_CREATE = 'folder.create'
    FOLDER_UPDATE = 'folder.update'
    FOLDER_DELETE = 'folder.delete'

    RESOURCE_READ = 'resource.read'
    RESOURCE_VIEW = 'resource.view'
    RESOURCE_DOWNLOAD = 'resource.download'
    RESOURCE_CREATE = 'resource.create'
    RESOURCE_UPDATE = 'resource.update'
    RESOURCE_DELETE = 'resource.delete'
    RESOURCE_ATTACH_FILES = 'resource.attach_files'
    RESOURCE_DETACH_FILE = 'resource.detach_file'
    RESOURCE_FAVORITE = 'resource.favorite'

    FILE_READ = 'file.read'
    FILE_UPLOAD = 'file.upload'
    FILE_STATS = 'file.stats'

    STATS_READ = 'stats.read'

    USER_READ = 'user.read'
    USER_LIST = 'user.list'
    USER_CREATE = 'user.create'
    USER_UPDATE = 'user.update'
    USER_CHANGE_PASSWORD = 'user.change_password'
    USER_CHANGE_ROLE = 'user.change_role'
    USER_DEACTIVATE = 'user.deactivate'


class Decision(enum.Enum):
    """Outcome of an authorization check."""

    ALLOW = 'allow'
    DENY_UNAUTHENTICATED = 'deny_unauthenticated'
    DENY_FORBIDDEN = 'deny_forbidden'


@dataclass(frozen=True)
class Rule:
    """Requirement of one operation.

    ``min_role=None`` lets anonymous callers through.
    """

    min_role: Role | None
    owned: bool = False


RULES: Final[dict[Operation, Rule]] = {
    # Public reads and counters
    Operation.DEPARTMENT_READ: Rule(None),
    Operation.FOLDER_READ: Rule(None),
    Operation.RESOURCE_READ: Rule(None),
    Operation.RESOURCE_VIEW: Rule(None),
    Operation.RESOURCE_DOWNLOAD: Rule(None),
    Operation.FILE_READ: Rule(None),
    # Any signed-in user
    Operation.STATS_READ: Rule(Role.VISITOR),
    Operation.RESOURCE_FAVORITE: Rule(Role.VISITOR),
    Operation.USER_READ: Rule(Role.VISITOR),
    Operation.USER_UPDATE: Rule(Role.VISITOR, owned=True),
    Operation.USER_CHANGE_PASSWORD: Rule(Role.VISITOR, owned=True),
    # Contributors
    Operation.FOLDER_CREATE: Rule(Role.MEMBER),
    Operation.FOLDER_UPDATE: Rule(Role.MEMBER, owned=True),
    Operation.FOLDER_DELETE: Rule(Role.MEMBER, owned=True),
    Operation.RESOURCE_CREATE: Rule(Role.MEMBER),
    Operation.RESOURCE_UPDATE: Rule(Role.MEMBER, owned=True),
    Operation.RESOURCE_DELETE: Rule(Role.MEMBER, owned=True),
    Operation.RESOURCE_ATTACH_FILES: Rule(Role.MEMBER, owned=True),
    Operation.RESOURCE_DETACH_FILE: Rule(Role.MEMBER, owned=True),
    Operation.FILE_UPLOAD: Rule(Role.MEMBER),
    # Administration
    Operation.DEPARTMENT_CREATE: Rule(Role.CO_MANAGER),
    Operation.DEPARTMENT_UPDATE: Rule(Role.CO_MANAGER),
    Operation.DEPARTMENT_DELETE: Rule(Role.CO_MANAGER),
    Operation.FILE_STATS: Rule(Role.CO_MANAGER),
    Operation.USER_LIST: Rule(Role.CO_MANAGER),
    Operation.USER_CREATE: Rule(Role.CO_MANAGER),
    Operation.USER_CHANGE_ROLE: Rule(Role.CO_MANAGER),
    Operation.USER_DEACTIVATE: Rule(Role.CO_MANAGER),
}


def has_role(actor: Actor, min_role: Role) -> bool:
    """Check that ``actor`` ranks at least ``min_role``."""
    return _ROLE_RANK[actor.role] >= _ROLE_RANK[min_role]


def authorize(
    actor: Actor | None,
    operation: Operation,
    target: Owned | Any = None,
) -> Decision:
    """Decide whether ``actor`` may perform ``operation`` on ``target``.

    Access is granted iff the role minimum is met and, for owned
    operations, the actor owns the target or is a co-manager.

    Args:
        actor: Authenticated identity, None for anonymous callers.
        operation: Operation being attempted.
        target: Entity the operation applies to (needs ``owner_id``
            when the rule is owned).

    Returns:
        Decision, distinguishing missing identity from lacking rights.
    """
    rule = RULES[operation]
    if rule.min_role is None:
        return Decision.ALLOW
    if actor is None:
        return Decision.DENY_UNAUTHENTICATED
    if not has_role(actor, rule.min_role):
        return Decision.DENY_FORBIDDEN
    if not rule.owned or actor.is_co_manager:
        return Decision.ALLOW
    if target is not None and target.owner_id == actor.id:
        return Decision.ALLOW
    return Decision.DENY_FORBIDDEN


def require_permission(
    actor: Actor | None,
    operation: Operation,
    target: Owned | Any = None,
) -> Actor | None:
    """Raise unless ``actor`` may perform ``operation``.

    Args:
        actor: Authenticated identity or None.
        operation: Operation being attempted.
        target: Entity the operation applies to.

    Returns:
        The actor, for chaining.

    Raises:
        AuthenticationError: If the operation needs an identity and
            none is present.
        AuthorizationError: If the identity lacks role or ownership.
    """
    decision = authorize(actor, operation, target)
    if decision is Decision.DENY_UNAUTHENTICATED:
        logger.warning('Anonymous caller denied: %s', operation.value)
        raise AuthenticationError('Not authorized, no token')
    if decision is Decision.DENY_FORBIDDEN:
        logger.warning(
            'Actor %s (%s) denied: %s',
            actor.id if actor else None,
            actor.role if actor else None,
            operation.value,
        )
        raise AuthorizationError()
    return actor


def require_actor(actor: Actor | None, operation: Operation) -> Actor:
    """Like ``require_permission`` for operations that need an identity.

    Args:
        actor: Authenticated identity or None.
        operation: Operation with a non-anonymous rule.

    Returns:
        The actor, never None.
    """
    require_permission(actor, operation)
    if actor is None:
        raise AuthenticationError('Not authorized, no token')
    return actor
