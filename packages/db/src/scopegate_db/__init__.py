# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import Action, FieldKind, ScopeLevel, ScopeRelation, SortDirection, UserRole
from .models import AuditEvent, Credential, Resource, RevokedSession, ScopeNode
from .paths import InvalidScopeSegment, ScopePath
from .repository import (
    Operator,
    Predicate,
    RecordDeleted,
    RecordNotFound,
    ResourceRepository,
    ScopeRepository,
    SearchTerm,
    SortKey,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "Action",
    "FieldKind",
    "ScopeLevel",
    "ScopeRelation",
    "SortDirection",
    "UserRole",
    # Models
    "AuditEvent",
    "Credential",
    "Resource",
    "RevokedSession",
    "ScopeNode",
    # Scope paths
    "InvalidScopeSegment",
    "ScopePath",
    # Repositories
    "Operator",
    "Predicate",
    "RecordDeleted",
    "RecordNotFound",
    "ResourceRepository",
    "ScopeRepository",
    "SearchTerm",
    "SortKey",
]
