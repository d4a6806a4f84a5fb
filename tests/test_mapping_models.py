"""
Unit tests for the mapping models

Tests:
- Condition / MappingRule JSON forms, including legacy exports
- Chain editing helpers
- MappingSet editing operations
"""

import pytest

from dsi.schema.models import (
    Condition,
    Join,
    MappingKind,
    MappingRule,
    MappingSet,
    append_condition,
    is_valid_chain,
    normalize_chain,
    remove_condition,
)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def chain():
    """Valid three-condition chain"""
    return [
        Condition("review_count", ">", "5", Join.AND),
        Condition("average_rating", ">", "4.5", Join.OR),
        Condition("product.vendor", "==", "Acme", Join.TERMINAL),
    ]


@pytest.fixture
def mapping_set():
    """Mapping set with two rules"""
    return MappingSet(rules=[
        MappingRule(id=1, source="product.title", target="name"),
        MappingRule(id=4, source="current_price", target="offers.price"),
    ])


# ============================================================================
# TEST: JSON forms
# ============================================================================


class TestJsonForms:
    """Tests for to_dict / from_dict"""

    def test_condition_round_trip(self):
        """Test a condition survives its JSON form"""
        condition = Condition("review_count", ">", "5", Join.AND)
        assert Condition.from_dict(condition.to_dict()) == condition

    def test_condition_legacy_fields(self):
        """Test legacy logic/END, spaced operator and numeric value"""
        condition = Condition.from_dict(
            {"field": " review_count ", "operator": "is empty", "value": 5, "logic": "END"}
        )
        assert condition == Condition("review_count", "is-empty", "5", Join.TERMINAL)

    def test_condition_join_case_and_unknown(self):
        """Test join spelling tolerance"""
        assert Condition.from_dict({"field": "a", "operator": ">", "join": "and"}).join == Join.AND
        assert Condition.from_dict({"field": "a", "operator": ">", "join": "XOR"}).join == Join.TERMINAL

    def test_condition_value_coercion(self):
        """Test literal values are stored as strings"""
        assert Condition.from_dict({"field": "a", "operator": "==", "value": 5.0}).value == "5"
        assert Condition.from_dict({"field": "a", "operator": "==", "value": True}).value == "true"
        assert Condition.from_dict({"field": "a", "operator": "==", "value": None}).value == ""

    def test_rule_to_dict(self):
        """Test a rule's JSON form"""
        rule = MappingRule(id=1, source="product.title", target="name")
        assert rule.to_dict() == {
            "id": 1,
            "source": "product.title",
            "target": "name",
            "kind": "PlainText",
            "conditions": [],
        }

    def test_rule_to_dict_result_property(self):
        """Test result_property is written only when set"""
        rule = MappingRule(id=1, source="a", target="b", kind=MappingKind.CONDITIONAL, result_property="bestRating")
        assert rule.to_dict()["result_property"] == "bestRating"

    def test_rule_legacy_export(self):
        """Test the legacy editor's export format"""
        rule = MappingRule.from_dict({
            "id": "2",
            "type": "Condition",
            "source": "average_rating",
            "target": "review",
            "conditions": [
                {"field": "review_count", "operator": ">", "value": 5, "logic": "AND"},
                {"field": "average_rating", "operator": ">", "value": 4.5, "logic": "END"},
            ],
        })

        assert rule.id == 2
        assert rule.kind == MappingKind.CONDITIONAL
        assert [c.join for c in rule.conditions] == [Join.AND, Join.TERMINAL]
        assert rule.conditions[1].value == "4.5"

    def test_rule_defaults(self):
        """Test missing and invalid fields"""
        rule = MappingRule.from_dict({"id": "abc", "type": "Text", "source": None}, default_id=3)

        assert rule.id == 3
        assert rule.kind == MappingKind.PLAIN_TEXT
        assert rule.source == ""
        assert rule.conditions == []

    def test_from_list_assigns_positional_ids(self):
        """Test ids default to list position"""
        mapping_set = MappingSet.from_list([{"source": "a", "target": "b"}, {"source": "c", "target": "d"}])
        assert [r.id for r in mapping_set] == [1, 2]


# ============================================================================
# TEST: Chain helpers
# ============================================================================


class TestChainHelpers:
    """Tests for chain editing"""

    def test_append_to_empty(self):
        """Test the first condition is TERMINAL"""
        chain = append_condition([], Condition("a", ">", "1", Join.AND))
        assert [c.join for c in chain] == [Join.TERMINAL]

    def test_append_moves_terminal(self, chain):
        """Test the old tail becomes AND"""
        new_chain = append_condition(chain, Condition("subtitle", "is-empty"))

        assert [c.join for c in new_chain] == [Join.AND, Join.OR, Join.AND, Join.TERMINAL]
        assert chain[-1].join == Join.TERMINAL

    def test_remove_last_remarks_tail(self, chain):
        """Test removing the tail re-marks the new one"""
        new_chain = remove_condition(chain, 2)
        assert [c.join for c in new_chain] == [Join.AND, Join.TERMINAL]

    def test_remove_middle(self, chain):
        """Test removing from the middle keeps the other joins"""
        new_chain = remove_condition(chain, 1)
        assert [(c.field, c.join) for c in new_chain] == [
            ("review_count", Join.AND),
            ("product.vendor", Join.TERMINAL),
        ]

    def test_normalize_chain(self):
        """Test misplaced TERMINALs are repaired"""
        broken = [
            Condition("a", ">", "1", Join.TERMINAL),
            Condition("b", ">", "1", Join.OR),
            Condition("c", ">", "1", Join.AND),
        ]
        assert [c.join for c in normalize_chain(broken)] == [Join.AND, Join.OR, Join.TERMINAL]

    def test_is_valid_chain(self, chain):
        """Test the TERMINAL-on-last-only check"""
        assert is_valid_chain(chain) is True
        assert is_valid_chain([]) is True
        assert is_valid_chain([Condition("a", ">", "1", Join.AND)]) is False
        assert is_valid_chain([Condition("a", ">", "1"), Condition("b", ">", "1")]) is False


# ============================================================================
# TEST: MappingSet
# ============================================================================


class TestMappingSet:
    """Tests for MappingSet editing"""

    def test_add_rule_uses_next_id(self, mapping_set):
        """Test new ids follow the largest existing one"""
        rule = mapping_set.add_rule(source="product.vendor", target="manufacturer")

        assert rule.id == 5
        assert mapping_set.rules[-1] is rule

    def test_add_rule_to_empty_set(self):
        """Test the first id is 1"""
        assert MappingSet().add_rule().id == 1

    def test_update_rule(self, mapping_set):
        """Test updating fields in place"""
        rule = mapping_set.update_rule(1, target="alternateName")
        assert rule.target == "alternateName"
        assert mapping_set.update_rule(99, target="x") is None

    def test_update_unknown_field(self, mapping_set):
        """Test unknown fields are rejected"""
        with pytest.raises(AttributeError):
            mapping_set.update_rule(1, colour="red")

    def test_remove_rule(self, mapping_set):
        """Test removal by id"""
        assert mapping_set.remove_rule(1) is True
        assert mapping_set.remove_rule(1) is False
        assert [r.id for r in mapping_set] == [4]

    def test_set_conditions(self, mapping_set):
        """Test setting a chain normalizes it and makes the rule conditional"""
        rule = mapping_set.set_conditions(1, [Condition("a", ">", "1", Join.TERMINAL), Condition("b", "<", "2", Join.AND)])

        assert rule.kind == MappingKind.CONDITIONAL
        assert [c.join for c in rule.conditions] == [Join.AND, Join.TERMINAL]

    def test_is_equivalent_ignores_ids_and_order(self, mapping_set):
        """Test equivalence up to renumbering"""
        other = MappingSet(rules=[
            MappingRule(id=1, source="current_price", target="offers.price"),
            MappingRule(id=2, source="product.title", target="name"),
        ])
        assert mapping_set.is_equivalent(other)

        other.update_rule(2, target="alternateName")
        assert not mapping_set.is_equivalent(other)
