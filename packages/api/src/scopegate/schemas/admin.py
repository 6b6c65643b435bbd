# This project was developed with assistance from AI tools.
"""Admin-only schemas: audit chain verification and policy listing."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from scopegate_db.enums import Action, ScopeRelation, UserRole


class AuditVerifyResponse(BaseModel):
    status: str
    events_checked: int
    first_break_id: int | None = None


class AuditEventItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    event_type: str
    principal_id: str | None = None
    principal_role: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    event_data: dict | None = None


class AccessRuleItem(BaseModel):
    role: UserRole
    action: Action
    resource_type: str
    scope_relation: ScopeRelation


class PolicyRulesResponse(BaseModel):
    count: int
    rules: list[AccessRuleItem]
