"""Mapping set validation."""
from collections import Counter
from typing import List, Optional

from config import EngineConfig
from dsi.parser.rule_grammar import RESERVED_WORDS, VALID_OPERATORS, RuleGrammar
from dsi.schema.models import MappingSet, canonical_operator, is_valid_chain


class MappingValidator:
    """Validates a mapping set before compilation."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """Initialize validator with optional engine configuration."""
        self.config = config or EngineConfig()

    def validate(self, mapping_set: MappingSet) -> List[str]:
        """Validate mappings; returns human-readable issues (empty when clean)."""
        errors = []

        # Ids are display-only but must stay unique
        id_counts = Counter(rule.id for rule in mapping_set)
        for rule_id, count in id_counts.items():
            if count > 1:
                errors.append(f"Duplicate rule id {rule_id} ({count} rules)")

        # Rules the compiler will skip
        for rule in mapping_set:
            if not rule.source:
                errors.append(f"Rule {rule.id}: missing source (will be skipped)")
            elif RuleGrammar.placeholder_path(f"[{rule.source}]") is None:
                errors.append(f"Rule {rule.id}: invalid source path '{rule.source}' (will be skipped)")

            if not rule.target:
                errors.append(f"Rule {rule.id}: missing target (will be skipped)")
            elif any(self.config.is_reserved_key(part) for part in rule.target.split(".")):
                errors.append(f"Rule {rule.id}: reserved target '{rule.target}' (will be skipped)")

        # Two rules writing the same property
        target_counts = Counter(rule.target for rule in mapping_set if rule.target)
        for target, count in target_counts.items():
            if count > 1:
                errors.append(f"Target '{target}' is written by {count} rules; the last one wins")

        # Condition chains
        for rule in mapping_set:
            if rule.is_conditional and not rule.conditions:
                errors.append(f"Rule {rule.id}: conditional without conditions (compiled as plain text)")

            if not rule.is_conditional and rule.conditions:
                errors.append(f"Rule {rule.id}: plain text rule carries conditions (ignored)")

            if not is_valid_chain(rule.conditions):
                errors.append(f"Rule {rule.id}: TERMINAL must mark only the last condition")

            for index, condition in enumerate(rule.conditions, 1):
                if not condition.field or condition.field in RESERVED_WORDS:
                    errors.append(f"Rule {rule.id}, condition {index}: invalid field '{condition.field}'")

                if canonical_operator(condition.operator) not in VALID_OPERATORS:
                    errors.append(
                        f"Rule {rule.id}, condition {index}: unknown operator '{condition.operator}'"
                    )

        return errors
