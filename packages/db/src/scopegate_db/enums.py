# This project was developed with assistance from AI tools.
"""
Domain enums for scoped resource access.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class UserRole(str, enum.Enum):
    SYSTEM_ADMIN = "system_admin"
    ORGANIZATION_ADMIN = "organization_admin"
    DEPARTMENT_HEAD = "department_head"
    NURSE = "nurse"
    TECHNICIAN = "technician"
    RECEPTIONIST = "receptionist"
    PATIENT = "patient"
    RECRUITER = "recruiter"
    APPLICANT = "applicant"
    REVIEWER = "reviewer"
    PM = "pm"
    PMO = "pmo"
    TPM = "tpm"
    QA = "qa"
    DESIGNER = "designer"
    DEVELOPER = "developer"
    USER = "user"
    EVENT_ORGANIZER = "event_organizer"


class Action(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"

    @classmethod
    def mutations(cls) -> frozenset["Action"]:
        """Actions rejected on soft-deleted resources."""
        return frozenset({cls.UPDATE, cls.DELETE})


class ScopeRelation(str, enum.Enum):
    SELF = "self"
    DESCENDANT = "descendant-of-own-scope"
    ANY = "any"


class ScopeLevel(str, enum.Enum):
    TENANT = "tenant"
    ORGANIZATION = "organization"
    DEPARTMENT = "department"
    PROJECT = "project"
    BOARD = "board"
    APPLICATION = "application"


class FieldKind(str, enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"
