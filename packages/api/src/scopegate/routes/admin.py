# This project was developed with assistance from AI tools.
"""System admin endpoints: audit chain verification and policy inspection."""

from fastapi import APIRouter, Depends
from scopegate_db import get_db
from scopegate_db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.policy import PolicyTable, get_policy
from ..middleware.auth import require_roles
from ..schemas.admin import (
    AccessRuleItem,
    AuditEventItem,
    AuditVerifyResponse,
    PolicyRulesResponse,
)
from ..services.audit import get_events_for_resource, verify_audit_chain

router = APIRouter()


@router.get(
    "/audit/verify",
    response_model=AuditVerifyResponse,
    dependencies=[Depends(require_roles(UserRole.SYSTEM_ADMIN))],
)
async def verify_audit(session: AsyncSession = Depends(get_db)) -> AuditVerifyResponse:
    """Walk the audit hash chain and report the first break, if any."""
    return AuditVerifyResponse(**await verify_audit_chain(session))


@router.get(
    "/audit/resources/{resource_id}",
    response_model=list[AuditEventItem],
    dependencies=[Depends(require_roles(UserRole.SYSTEM_ADMIN))],
)
async def resource_history(
    resource_id: str,
    session: AsyncSession = Depends(get_db),
) -> list[AuditEventItem]:
    """Audit events recorded against one resource, oldest first."""
    events = await get_events_for_resource(session, resource_id)
    return [AuditEventItem.model_validate(event) for event in events]


@router.get(
    "/policy/rules",
    response_model=PolicyRulesResponse,
    dependencies=[Depends(require_roles(UserRole.SYSTEM_ADMIN))],
)
async def policy_rules(policy: PolicyTable = Depends(get_policy)) -> PolicyRulesResponse:
    """The expanded access rule table, for auditing."""
    rules = [
        AccessRuleItem(
            role=rule.role,
            action=rule.action,
            resource_type=rule.resource_type,
            scope_relation=rule.scope_relation,
        )
        for rule in policy.rules
    ]
    return PolicyRulesResponse(count=len(rules), rules=rules)
