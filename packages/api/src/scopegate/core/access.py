# This project was developed with assistance from AI tools.
"""Access Guard: the single authorization decision point.

Pure functions with no FastAPI, database or I/O dependencies. Evaluation
order is fixed and first-match-wins:

1. deleted resource + mutating action   -> Deny(ALREADY_DELETED)
2. no rule for (role, action, type)      -> Deny(NO_SUCH_RULE)
3. rule relation ``any``                 -> Allow
4. rule relation ``self``                -> Allow iff created_by == principal.id
5. rule relation ``descendant``          -> Allow iff principal scope is a prefix
                                            of the resource's owner scope
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime

from scopegate_db.enums import Action, ScopeRelation
from scopegate_db.paths import ScopePath

from ..schemas.auth import Principal
from .errors import AlreadyDeleted, NoSuchRule, ScopeGateError, ScopeViolation
from .policy import AccessRule, PolicyTable

logger = logging.getLogger(__name__)


class DenyReason(str, enum.Enum):
    ALREADY_DELETED = "already_deleted"
    NO_SUCH_RULE = "no_such_rule"
    NOT_OWNER = "not_owner"
    SCOPE_VIOLATION = "scope_violation"


@dataclass(frozen=True)
class ResourceRef:
    """The attributes of a resource the guard looks at.

    Built from a stored row, or from the prospective values of a resource
    about to be created.
    """

    resource_type: str
    owner_scope: ScopePath
    created_by: str | None = None
    deleted_at: datetime | None = None
    id: str | None = None

    @classmethod
    def from_model(cls, resource) -> "ResourceRef":
        return cls(
            resource_type=resource.resource_type,
            owner_scope=ScopePath.decode(resource.owner_scope_path),
            created_by=resource.created_by,
            deleted_at=resource.deleted_at,
            id=resource.id,
        )


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: DenyReason | None = None
    rule: AccessRule | None = None

    @classmethod
    def allow(cls, rule: AccessRule) -> "AccessDecision":
        return cls(allowed=True, rule=rule)

    @classmethod
    def deny(cls, reason: DenyReason, rule: AccessRule | None = None) -> "AccessDecision":
        return cls(allowed=False, reason=reason, rule=rule)


def authorize(
    policy: PolicyTable,
    principal: Principal,
    action: Action,
    resource: ResourceRef,
) -> AccessDecision:
    """Decide whether ``principal`` may perform ``action`` on ``resource``."""
    if resource.deleted_at is not None and action in Action.mutations():
        return AccessDecision.deny(DenyReason.ALREADY_DELETED)

    rule = policy.lookup(principal.role, action, resource.resource_type)
    if rule is None:
        return AccessDecision.deny(DenyReason.NO_SUCH_RULE)

    if rule.scope_relation == ScopeRelation.ANY:
        return AccessDecision.allow(rule)

    if rule.scope_relation == ScopeRelation.SELF:
        if resource.created_by is not None and resource.created_by == principal.id:
            return AccessDecision.allow(rule)
        return AccessDecision.deny(DenyReason.NOT_OWNER, rule)

    if principal.scope.covers(resource.owner_scope):
        return AccessDecision.allow(rule)
    return AccessDecision.deny(DenyReason.SCOPE_VIOLATION, rule)


_DENY_ERRORS: dict[DenyReason, type[ScopeGateError]] = {
    DenyReason.ALREADY_DELETED: AlreadyDeleted,
    DenyReason.NO_SUCH_RULE: NoSuchRule,
    # A resource the principal does not own under a ``self`` rule is hidden
    # the same way an out-of-scope resource is.
    DenyReason.NOT_OWNER: ScopeViolation,
    DenyReason.SCOPE_VIOLATION: ScopeViolation,
}


def deny_error(decision: AccessDecision) -> ScopeGateError:
    """Map a Deny decision to the exception surfaced to the caller."""
    return _DENY_ERRORS[decision.reason]()


def log_denial(
    principal: Principal,
    action: Action,
    resource: ResourceRef,
    decision: AccessDecision,
) -> None:
    if decision.reason == DenyReason.NO_SUCH_RULE:
        logger.warning(
            "Policy gap: no rule for role=%s action=%s type=%s (principal=%s)",
            principal.role.value,
            action.value,
            resource.resource_type,
            principal.id,
        )
    else:
        logger.warning(
            "Access denied: principal=%s role=%s action=%s type=%s id=%s reason=%s",
            principal.id,
            principal.role.value,
            action.value,
            resource.resource_type,
            resource.id,
            decision.reason.value,
        )
