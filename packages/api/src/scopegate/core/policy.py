# This project was developed with assistance from AI tools.
"""Authorization policy table.

The policy is data: a YAML document listing each role's scope level, the
resource type catalogue and the access rules. Rules may name several roles,
actions or resource types (or ``"*"``); they are expanded here into the
closed set of concrete ``AccessRule`` entries the Access Guard looks up.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml
from scopegate_db.enums import Action, FieldKind, ScopeLevel, ScopeRelation, UserRole

from .config import settings
from .errors import PolicyError

logger = logging.getLogger(__name__)

DEFAULT_POLICY_PATH = Path(__file__).with_name("policy.yaml")
WILDCARD = "*"


def matches_kind(kind: FieldKind, value) -> bool:
    # bool is an int subclass; keep the two apart
    if kind == FieldKind.BOOLEAN:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if kind == FieldKind.INTEGER:
        return isinstance(value, int)
    if kind == FieldKind.FLOAT:
        return isinstance(value, (int, float))
    return isinstance(value, str)


@dataclass(frozen=True)
class AccessRule:
    role: UserRole
    action: Action
    resource_type: str
    scope_relation: ScopeRelation


@dataclass(frozen=True)
class ResourceTypeSpec:
    """Catalogue entry for one resource type.

    ``parent_level`` is the level the owning scope must have (None = root).
    ``opens_scope`` is set for container types whose instances become scope
    nodes that child resources are created under.
    """

    name: str
    parent_level: ScopeLevel | None = None
    opens_scope: ScopeLevel | None = None
    fields: Mapping[str, FieldKind] = field(default_factory=dict)
    searchable: tuple[str, ...] = ()

    def mistyped_fields(self, payload: Mapping) -> list[str]:
        """Declared fields whose value does not match the catalogue kind. None is allowed."""
        return sorted(
            name
            for name, kind in self.fields.items()
            if payload.get(name) is not None and not matches_kind(kind, payload[name])
        )


class PolicyTable:
    """Indexed, immutable view over the expanded rule set."""

    def __init__(
        self,
        rules: Iterable[AccessRule],
        resource_types: Iterable[ResourceTypeSpec],
        role_levels: Mapping[UserRole, ScopeLevel | None],
    ):
        self._types = {spec.name: spec for spec in resource_types}
        self._role_levels = dict(role_levels)
        self._rules: dict[tuple[UserRole, Action, str], AccessRule] = {}
        for rule in rules:
            key = (rule.role, rule.action, rule.resource_type)
            if key in self._rules:
                raise PolicyError(
                    f"Duplicate rule for role={rule.role.value} action={rule.action.value} "
                    f"type={rule.resource_type}"
                )
            if rule.resource_type not in self._types:
                raise PolicyError(f"Rule references unknown resource type {rule.resource_type!r}")
            self._rules[key] = rule

        missing = [role.value for role in UserRole if role not in self._role_levels]
        if missing:
            raise PolicyError(f"Roles without a scope level: {missing}")

    def lookup(self, role: UserRole, action: Action, resource_type: str) -> AccessRule | None:
        return self._rules.get((role, action, resource_type))

    def resource_type(self, name: str) -> ResourceTypeSpec | None:
        return self._types.get(name)

    def role_level(self, role: UserRole) -> ScopeLevel | None:
        return self._role_levels[role]

    @property
    def rules(self) -> tuple[AccessRule, ...]:
        """All rules in a stable order, for auditing."""
        return tuple(
            sorted(
                self._rules.values(),
                key=lambda r: (r.role.value, r.resource_type, r.action.value),
            )
        )

    @property
    def resource_types(self) -> tuple[ResourceTypeSpec, ...]:
        return tuple(self._types.values())

    def __len__(self) -> int:
        return len(self._rules)


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _parse_enum(enum_cls, raw, what: str):
    try:
        return enum_cls(raw)
    except ValueError as exc:
        raise PolicyError(f"Unknown {what} {raw!r}") from exc


def _parse_level(raw, what: str) -> ScopeLevel | None:
    if raw is None:
        return None
    return _parse_enum(ScopeLevel, raw, what)


def _parse_resource_type(name: str, body: Mapping | None) -> ResourceTypeSpec:
    body = body or {}
    fields = {
        str(field_name): _parse_enum(FieldKind, kind, f"field kind for {name}.{field_name}")
        for field_name, kind in (body.get("fields") or {}).items()
    }
    searchable = tuple(_as_list(body.get("searchable")))
    for field_name in searchable:
        if fields.get(field_name) != FieldKind.STRING:
            raise PolicyError(f"Searchable field {name}.{field_name} must be a declared string field")
    return ResourceTypeSpec(
        name=name,
        parent_level=_parse_level(body.get("parent_level"), f"parent level for {name}"),
        opens_scope=_parse_level(body.get("opens_scope"), f"scope level for {name}"),
        fields=fields,
        searchable=searchable,
    )


def _expand_rule(entry: Mapping, type_names: list[str]) -> list[AccessRule]:
    roles = entry.get("role")
    actions = entry.get("actions", WILDCARD)
    types = entry.get("resource_types", WILDCARD)

    role_values = list(UserRole) if roles == WILDCARD else [
        _parse_enum(UserRole, r, "role") for r in _as_list(roles)
    ]
    action_values = list(Action) if actions == WILDCARD else [
        _parse_enum(Action, a, "action") for a in _as_list(actions)
    ]
    type_values = type_names if types == WILDCARD else [str(t) for t in _as_list(types)]
    relation = _parse_enum(ScopeRelation, entry.get("scope"), "scope relation")

    if not role_values or not action_values or not type_values:
        raise PolicyError(f"Rule must name at least one role, action and resource type: {entry}")

    return [
        AccessRule(role=role, action=action, resource_type=type_name, scope_relation=relation)
        for role in role_values
        for action in action_values
        for type_name in type_values
    ]


def parse_policy(document: Mapping) -> PolicyTable:
    """Build a PolicyTable from an already-parsed policy document."""
    if not isinstance(document, Mapping):
        raise PolicyError("Policy document must be a mapping")

    role_levels = {
        _parse_enum(UserRole, role, "role"): _parse_level(level, f"scope level for {role}")
        for role, level in (document.get("roles") or {}).items()
    }
    resource_types = [
        _parse_resource_type(str(name), body)
        for name, body in (document.get("resource_types") or {}).items()
    ]
    type_names = [spec.name for spec in resource_types]

    rules: list[AccessRule] = []
    for entry in document.get("rules") or []:
        rules.extend(_expand_rule(entry, type_names))

    return PolicyTable(rules, resource_types, role_levels)


def load_policy(path: str | Path | None = None) -> PolicyTable:
    """Read and parse a policy YAML file (the bundled one by default)."""
    policy_path = Path(path) if path else DEFAULT_POLICY_PATH
    try:
        document = yaml.safe_load(policy_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise PolicyError(f"Cannot read policy file {policy_path}: {exc}") from exc

    table = parse_policy(document)
    logger.info(
        "Loaded policy from %s: %d rules, %d resource types",
        policy_path,
        len(table),
        len(table.resource_types),
    )
    return table


@lru_cache(maxsize=1)
def get_policy() -> PolicyTable:
    """FastAPI dependency: the process-wide policy table."""
    return load_policy(settings.POLICY_FILE)
