# This project was developed with assistance from AI tools.
"""Tests for policy document parsing and rule lookup."""

import pytest
from scopegate_db.enums import Action, FieldKind, ScopeLevel, ScopeRelation, UserRole

from scopegate.core.errors import PolicyError
from scopegate.core.policy import load_policy, parse_policy


def _document(**overrides):
    doc = {
        "roles": {role.value: None for role in UserRole},
        "resource_types": {
            "note": {"parent_level": None, "fields": {"title": "string", "rank": "integer"}},
        },
        "rules": [],
    }
    doc.update(overrides)
    return doc


# ---------------------------------------------------------------------------
# Bundled policy
# ---------------------------------------------------------------------------


def test_bundled_policy_loads(policy):
    assert len(policy) > 0
    assert policy.resource_type("task") is not None


def test_system_admin_has_any_rule_for_every_type(policy):
    for spec in policy.resource_types:
        for action in Action:
            rule = policy.lookup(UserRole.SYSTEM_ADMIN, action, spec.name)
            assert rule is not None
            assert rule.scope_relation == ScopeRelation.ANY


def test_every_role_has_a_level(policy):
    assert policy.role_level(UserRole.SYSTEM_ADMIN) is None
    assert policy.role_level(UserRole.ORGANIZATION_ADMIN) == ScopeLevel.ORGANIZATION
    assert policy.role_level(UserRole.NURSE) == ScopeLevel.DEPARTMENT
    assert policy.role_level(UserRole.DEVELOPER) == ScopeLevel.PROJECT


def test_patient_appointment_rule_is_self(policy):
    rule = policy.lookup(UserRole.PATIENT, Action.READ, "appointment")
    assert rule.scope_relation == ScopeRelation.SELF


def test_missing_rule_returns_none(policy):
    assert policy.lookup(UserRole.NURSE, Action.DELETE, "patient_record") is None
    assert policy.lookup(UserRole.APPLICANT, Action.CREATE, "job_posting") is None


def test_container_types_open_scopes(policy):
    assert policy.resource_type("organization").opens_scope == ScopeLevel.ORGANIZATION
    assert policy.resource_type("board").parent_level == ScopeLevel.PROJECT
    assert policy.resource_type("task").opens_scope is None


def test_rules_are_sorted_for_listing(policy):
    rules = policy.rules
    keys = [(r.role.value, r.resource_type, r.action.value) for r in rules]
    assert keys == sorted(keys)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def test_wildcards_and_role_lists_expand():
    doc = _document(
        rules=[
            {
                "role": ["qa", "developer"],
                "actions": "*",
                "resource_types": "*",
                "scope": "self",
            }
        ]
    )
    table = parse_policy(doc)
    assert len(table) == 2 * len(Action)
    assert table.lookup(UserRole.QA, Action.DELETE, "note").scope_relation == ScopeRelation.SELF


def test_field_kinds_parsed():
    table = parse_policy(_document())
    assert table.resource_type("note").fields == {
        "title": FieldKind.STRING,
        "rank": FieldKind.INTEGER,
    }


def test_duplicate_rule_rejected():
    rule = {"role": "qa", "actions": ["read"], "resource_types": ["note"], "scope": "any"}
    with pytest.raises(PolicyError, match="Duplicate rule"):
        parse_policy(_document(rules=[rule, dict(rule, scope="self")]))


def test_unknown_resource_type_in_rule_rejected():
    rule = {"role": "qa", "actions": ["read"], "resource_types": ["ghost"], "scope": "any"}
    with pytest.raises(PolicyError, match="unknown resource type"):
        parse_policy(_document(rules=[rule]))


def test_unknown_scope_relation_rejected():
    rule = {"role": "qa", "actions": ["read"], "resource_types": ["note"], "scope": "sideways"}
    with pytest.raises(PolicyError, match="scope relation"):
        parse_policy(_document(rules=[rule]))


def test_role_without_level_rejected():
    roles = {role.value: None for role in UserRole if role != UserRole.QA}
    with pytest.raises(PolicyError, match="without a scope level"):
        parse_policy(_document(roles=roles))


def test_searchable_field_must_be_string():
    types = {"note": {"fields": {"rank": "integer"}, "searchable": ["rank"]}}
    with pytest.raises(PolicyError, match="Searchable field"):
        parse_policy(_document(resource_types=types))


def test_load_policy_missing_file(tmp_path):
    with pytest.raises(PolicyError, match="Cannot read policy file"):
        load_policy(tmp_path / "missing.yaml")


def test_load_policy_from_file(tmp_path):
    path = tmp_path / "policy.yaml"
    roles = "\n".join(f"  {role.value}: null" for role in UserRole)
    path.write_text(
        f"roles:\n{roles}\n"
        "resource_types:\n"
        "  note:\n"
        "    fields: {title: string}\n"
        "rules:\n"
        "  - role: user\n"
        "    actions: [read]\n"
        "    resource_types: [note]\n"
        "    scope: any\n",
        encoding="utf-8",
    )
    table = load_policy(path)
    assert len(table) == 1
    assert table.lookup(UserRole.USER, Action.READ, "note") is not None
