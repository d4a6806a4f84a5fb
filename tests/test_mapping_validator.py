"""
Unit tests for MappingValidator and HeuristicMapper
"""

import pytest

from dsi.mapper.heuristic import HeuristicMapper
from dsi.schema.models import Condition, Join, MappingKind, MappingRule, MappingSet
from dsi.validator.mapping_validator import MappingValidator


# ============================================================================
# TEST: MappingValidator
# ============================================================================


class TestMappingValidator:
    """Tests for MappingValidator class"""

    @pytest.fixture
    def validator(self):
        return MappingValidator()

    def test_clean_set(self, validator):
        """Test a valid set has no issues"""
        mapping_set = MappingSet(rules=[
            MappingRule(id=1, source="product.title", target="name"),
            MappingRule(
                id=2,
                source="average_rating",
                target="review",
                kind=MappingKind.CONDITIONAL,
                conditions=[Condition("review_count", ">", "5")],
            ),
        ])
        assert validator.validate(mapping_set) == []

    def test_skipped_rules_reported(self, validator):
        """Test rules the compiler would skip"""
        errors = validator.validate(MappingSet(rules=[
            MappingRule(id=1, source="", target="name"),
            MappingRule(id=2, source="product.title", target=""),
            MappingRule(id=3, source="two words", target="sku"),
        ]))

        assert "Rule 1: missing source (will be skipped)" in errors
        assert "Rule 2: missing target (will be skipped)" in errors
        assert "Rule 3: invalid source path 'two words' (will be skipped)" in errors

    def test_reserved_sources_and_targets(self, validator):
        """Test sources and targets that collide with engine markup"""
        errors = validator.validate(MappingSet(rules=[
            MappingRule(id=1, source="NULL", target="name"),
            MappingRule(id=2, source="x", target="sku_Rule"),
            MappingRule(id=3, source="y", target="_commentary"),
            MappingRule(id=4, source="z", target="offers.@id"),
        ]))

        assert "Rule 1: invalid source path 'NULL' (will be skipped)" in errors
        assert "Rule 2: reserved target 'sku_Rule' (will be skipped)" in errors
        assert "Rule 3: reserved target '_commentary' (will be skipped)" in errors
        assert "Rule 4: reserved target 'offers.@id' (will be skipped)" in errors

    def test_duplicate_ids_and_targets(self, validator):
        """Test duplicate ids and targets"""
        errors = validator.validate(MappingSet(rules=[
            MappingRule(id=1, source="a", target="name"),
            MappingRule(id=1, source="b", target="name"),
        ]))

        assert "Duplicate rule id 1 (2 rules)" in errors
        assert "Target 'name' is written by 2 rules; the last one wins" in errors

    def test_kind_and_chain_mismatch(self, validator):
        """Test conditions that do not match the rule kind"""
        errors = validator.validate(MappingSet(rules=[
            MappingRule(id=1, source="a", target="b", kind=MappingKind.CONDITIONAL),
            MappingRule(id=2, source="c", target="d", conditions=[Condition("x", ">", "1")]),
        ]))

        assert "Rule 1: conditional without conditions (compiled as plain text)" in errors
        assert "Rule 2: plain text rule carries conditions (ignored)" in errors

    def test_bad_conditions(self, validator):
        """Test broken chains, reserved fields and unknown operators"""
        errors = validator.validate(MappingSet(rules=[
            MappingRule(
                id=1,
                source="a",
                target="b",
                kind=MappingKind.CONDITIONAL,
                conditions=[
                    Condition("AND", ">", "1", Join.TERMINAL),
                    Condition("x", ">=", "1", Join.AND),
                ],
            ),
        ]))

        assert "Rule 1: TERMINAL must mark only the last condition" in errors
        assert "Rule 1, condition 1: invalid field 'AND'" in errors
        assert "Rule 1, condition 2: unknown operator '>='" in errors

    def test_legacy_operator_accepted(self, validator):
        """Test the spaced is empty spelling is valid"""
        errors = validator.validate(MappingSet(rules=[
            MappingRule(
                id=1, source="a", target="b", kind=MappingKind.CONDITIONAL,
                conditions=[Condition("subtitle", "is empty")],
            ),
        ]))
        assert errors == []


# ============================================================================
# TEST: HeuristicMapper
# ============================================================================


class TestHeuristicMapper:
    """Tests for HeuristicMapper class"""

    @pytest.fixture
    def mapper(self):
        return HeuristicMapper()

    def test_common_mappings(self, mapper):
        """Test well-known storefront fields"""
        assert mapper.suggest_target("product.metafields.custom.isbn") == "identifier"
        assert mapper.suggest_target("product.fabric_type") == "material"
        assert mapper.suggest_target("current_price") == "price"
        assert mapper.suggest_target("product.Title") == "name"

    def test_fuzzy_match(self, mapper):
        """Test close spellings match a known target"""
        assert mapper.suggest_target("product.manufactur") == "manufacturer"

    def test_no_match(self, mapper):
        """Test unrelated and empty sources"""
        assert mapper.suggest_target("xyz123") is None
        assert mapper.suggest_target("") is None

    def test_suggest_kind(self, mapper):
        """Test review targets are suggested as conditional"""
        assert mapper.suggest_kind("review") == MappingKind.CONDITIONAL
        assert mapper.suggest_kind("name") == MappingKind.PLAIN_TEXT

    def test_suggest_mappings(self, mapper):
        """Test a draft mapping set"""
        mapping_set = mapper.suggest_mappings(["product.title", "average_rating", "xyz123"])

        assert [(r.id, r.source, r.target, r.kind) for r in mapping_set] == [
            (1, "product.title", "name", MappingKind.PLAIN_TEXT),
            (2, "average_rating", "review", MappingKind.CONDITIONAL),
            (3, "xyz123", "", MappingKind.PLAIN_TEXT),
        ]

    def test_custom_targets(self):
        """Test a restricted target vocabulary"""
        mapper = HeuristicMapper(targets=["gtin13"])
        assert mapper.suggest_target("gtin_13") == "gtin13"
