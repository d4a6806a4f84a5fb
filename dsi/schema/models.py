"""Modelos para representar regras de mapeamento e cadeias de condições."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional


class MappingKind(str, Enum):
    """Kinds of mapping rule"""
    PLAIN_TEXT = "PlainText"
    CONDITIONAL = "Conditional"


class Operator(str, Enum):
    """Comparison operators understood by the condition evaluator"""
    GT = ">"
    LT = "<"
    EQ = "=="
    NE = "!="
    CONTAINS = "contains"
    IS_EMPTY = "is-empty"


class Join(str, Enum):
    """Relation between a condition and the next one in its chain"""
    AND = "AND"
    OR = "OR"
    TERMINAL = "TERMINAL"


# Spellings produced by the legacy editor export
LEGACY_KINDS = {
    "Text": MappingKind.PLAIN_TEXT,
    "Condition": MappingKind.CONDITIONAL,
}
LEGACY_JOINS = {
    "END": Join.TERMINAL,
}
OPERATOR_ALIASES = {
    "is empty": Operator.IS_EMPTY.value,
}


def canonical_operator(operator: str) -> str:
    """Return the canonical spelling of an operator (unknown ones unchanged)."""
    operator = str(operator).strip()
    return OPERATOR_ALIASES.get(operator, operator)


def literal_to_string(value: Any) -> str:
    """Coerce a condition literal to its string form."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class Condition:
    """Representa um predicado atômico e sua junção com o próximo."""

    field: str
    operator: str
    value: str = ""
    join: Join = Join.TERMINAL

    def to_dict(self) -> Dict[str, Any]:
        """Converte para dicionário."""
        return {
            "field": self.field,
            "operator": self.operator,
            "value": self.value,
            "join": Join(self.join).value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        """Build a condition from its JSON form (legacy ``logic`` accepted)."""
        raw_join = str(data.get("join", data.get("logic", Join.TERMINAL.value))).upper()
        join = LEGACY_JOINS.get(raw_join)
        if join is None:
            try:
                join = Join(raw_join)
            except ValueError:
                join = Join.TERMINAL

        return cls(
            field=str(data.get("field", "")).strip(),
            operator=canonical_operator(data.get("operator", "")),
            value=literal_to_string(data.get("value")),
            join=join,
        )


def normalize_chain(conditions: List[Condition]) -> List[Condition]:
    """
    Return a copy of the chain with TERMINAL on, and only on, its last element.

    A TERMINAL found before the end becomes AND; the last join is forced to
    TERMINAL whatever it was.
    """
    normalized = []
    last = len(conditions) - 1

    for index, condition in enumerate(conditions):
        if index == last:
            join = Join.TERMINAL
        elif condition.join == Join.TERMINAL:
            join = Join.AND
        else:
            join = condition.join

        normalized.append(
            Condition(condition.field, condition.operator, condition.value, join)
        )

    return normalized


def append_condition(conditions: List[Condition], condition: Condition) -> List[Condition]:
    """Append to a chain: the previous tail becomes AND, the new one TERMINAL."""
    chain = list(conditions)
    if chain and chain[-1].join == Join.TERMINAL:
        tail = chain[-1]
        chain[-1] = Condition(tail.field, tail.operator, tail.value, Join.AND)
    chain.append(Condition(condition.field, condition.operator, condition.value, Join.TERMINAL))
    return chain


def remove_condition(conditions: List[Condition], index: int) -> List[Condition]:
    """Remove one condition and re-mark the new tail as TERMINAL."""
    chain = [c for i, c in enumerate(conditions) if i != index]
    return normalize_chain(chain)


def is_valid_chain(conditions: List[Condition]) -> bool:
    """Check the TERMINAL-on-last-only invariant."""
    if not conditions:
        return True
    terminals = [i for i, c in enumerate(conditions) if c.join == Join.TERMINAL]
    return terminals == [len(conditions) - 1]


@dataclass
class MappingRule:
    """Represents a mapping from a data path to a document property."""

    id: int
    source: str = ""
    target: str = ""
    kind: MappingKind = MappingKind.PLAIN_TEXT
    conditions: List[Condition] = field(default_factory=list)
    result_property: Optional[str] = None  # None = configured default

    @property
    def is_conditional(self) -> bool:
        return self.kind == MappingKind.CONDITIONAL

    def signature(self) -> tuple:
        """Identity of the rule ignoring its id."""
        return (
            self.kind.value,
            self.source,
            self.target,
            tuple(
                (c.field, canonical_operator(c.operator), c.value, Join(c.join).value)
                for c in self.conditions
            ),
            self.result_property,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "kind": self.kind.value,
            "conditions": [c.to_dict() for c in self.conditions],
        }
        if self.result_property:
            data["result_property"] = self.result_property
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_id: int = 0) -> "MappingRule":
        """Build a rule from its JSON form (legacy ``type`` accepted)."""
        raw_kind = data.get("kind", data.get("type", MappingKind.PLAIN_TEXT.value))
        kind = LEGACY_KINDS.get(raw_kind)
        if kind is None:
            try:
                kind = MappingKind(raw_kind)
            except ValueError:
                kind = MappingKind.PLAIN_TEXT

        try:
            rule_id = int(data.get("id", default_id))
        except (TypeError, ValueError):
            rule_id = default_id

        return cls(
            id=rule_id,
            source=str(data.get("source") or "").strip(),
            target=str(data.get("target") or "").strip(),
            kind=kind,
            conditions=[Condition.from_dict(c) for c in data.get("conditions") or []],
            result_property=data.get("result_property") or None,
        )


@dataclass
class MappingSet:
    """Ordered collection of mapping rules."""

    rules: List[MappingRule] = field(default_factory=list)

    def __iter__(self) -> Iterator[MappingRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def get_rule(self, rule_id: int) -> Optional[MappingRule]:
        """Retorna regra pelo id."""
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def next_id(self) -> int:
        """Next free id (max + 1)."""
        if not self.rules:
            return 1
        return max(rule.id for rule in self.rules) + 1

    def add_rule(
        self,
        source: str = "",
        target: str = "",
        kind: MappingKind = MappingKind.PLAIN_TEXT,
    ) -> MappingRule:
        """Append a new rule with a fresh id."""
        rule = MappingRule(id=self.next_id(), source=source, target=target, kind=kind)
        self.rules.append(rule)
        return rule

    def update_rule(self, rule_id: int, **fields) -> Optional[MappingRule]:
        """Update attributes of a rule in place."""
        rule = self.get_rule(rule_id)
        if rule is None:
            return None

        for name, value in fields.items():
            if not hasattr(rule, name):
                raise AttributeError(f"MappingRule has no field '{name}'")
            setattr(rule, name, value)

        return rule

    def remove_rule(self, rule_id: int) -> bool:
        """Remove a rule by id."""
        before = len(self.rules)
        self.rules = [rule for rule in self.rules if rule.id != rule_id]
        return len(self.rules) < before

    def set_conditions(self, rule_id: int, conditions: List[Condition]) -> Optional[MappingRule]:
        """Replace a rule's chain; the rule becomes Conditional."""
        return self.update_rule(
            rule_id,
            conditions=normalize_chain(conditions),
            kind=MappingKind.CONDITIONAL,
        )

    def is_equivalent(self, other: "MappingSet") -> bool:
        """Equal up to id renumbering and order."""
        mine = sorted(rule.signature() for rule in self.rules)
        theirs = sorted(rule.signature() for rule in other.rules)
        return mine == theirs

    def to_list(self) -> List[Dict[str, Any]]:
        return [rule.to_dict() for rule in self.rules]

    @classmethod
    def from_list(cls, items: List[Dict[str, Any]]) -> "MappingSet":
        """Build a mapping set from a list of rule dictionaries."""
        rules = []
        for index, item in enumerate(items, 1):
            rules.append(MappingRule.from_dict(item, default_id=index))
        return cls(rules=rules)


@dataclass
class CompileSkip:
    """A rule left out of compilation."""

    rule_id: int
    reason: str  # "missing_source", "missing_target", "invalid_source", "reserved_target", "target_conflict", "invalid_condition"
    message: str = ""


@dataclass
class ParseFailure:
    """A document that could not be mapped back to a mapping set."""

    reason: str  # "INVALID_DOCUMENT", "DEGENERATE_DOCUMENT", "NO_VALID_RULES"
    message: str = ""
    property_count: int = 0
    failed_carriers: List[str] = field(default_factory=list)

    INVALID_DOCUMENT = "INVALID_DOCUMENT"
    DEGENERATE_DOCUMENT = "DEGENERATE_DOCUMENT"
    NO_VALID_RULES = "NO_VALID_RULES"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reason": self.reason,
            "message": self.message,
            "property_count": self.property_count,
            "failed_carriers": self.failed_carriers,
        }
