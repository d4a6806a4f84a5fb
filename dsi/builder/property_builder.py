"""
Property Builder - Writes individual mapping rules into a document tree

Supports:
- Placeholder properties (target → "[source]")
- Rule-carrier objects (target → {"ratingValue_Rule": "IF (...) THEN [...] ELSE [NULL]"})
- Dotted targets addressing nested objects ("offers.price")
- Provenance comment entries
"""

import logging
from typing import Any, Dict, Optional, Tuple

from config import EngineConfig
from dsi.parser.rule_grammar import RuleGrammar
from dsi.schema.models import MappingRule

logger = logging.getLogger(__name__)


class TargetConflictError(ValueError):
    """Raised when a target path crosses a value that is not an object."""


class ReservedTargetError(ValueError):
    """Raised when a target segment is an @-keyword, a comment key or a carrier key."""


class InvalidSourceError(ValueError):
    """Raised when a source path cannot be written as a placeholder."""


class PropertyBuilder:
    """Builds individual document properties from mapping rules"""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize PropertyBuilder

        Args:
            config: Engine configuration (carrier suffix, comment prefix, type hints)
        """
        self.config = config or EngineConfig()

    def resolve_parent(self, document: Dict[str, Any], target: str) -> Tuple[Dict[str, Any], str]:
        """
        Find (or create) the object a dotted target writes into

        Example:
            "offers.price" -> (document["offers"], "price")

        Raises:
            TargetConflictError: If an intermediate segment holds a non-object value
            ReservedTargetError: If a segment would be read back as engine markup
        """
        parts = target.split(".")
        if any(not part for part in parts):
            raise TargetConflictError(f"Invalid target path: {target!r}")

        for part in parts:
            if self.config.is_reserved_key(part):
                raise ReservedTargetError(f"Target '{target}' uses reserved key '{part}'")

        parent = document
        for part in parts[:-1]:
            child = parent.get(part)
            if child is None:
                child = {}
                parent[part] = child
            elif not isinstance(child, dict):
                raise TargetConflictError(
                    f"Target '{target}' crosses non-object property '{part}'"
                )
            parent = child

        return parent, parts[-1]

    def build_placeholder(self, document: Dict[str, Any], rule: MappingRule) -> None:
        """Write target → "[source]" and its provenance entry."""
        self.check_source(rule.source)
        parent, key = self.resolve_parent(document, rule.target)

        parent[key] = RuleGrammar.make_placeholder(rule.source)
        parent[self.comment_key("id", rule.id)] = f"// Mapped via node ID {rule.id}"

    def build_carrier(self, document: Dict[str, Any], rule: MappingRule) -> None:
        """
        Write a rule-carrier object for a conditional rule

        An existing object at the target is kept and receives the carrier key;
        anything else is replaced by a new object.

        Raises:
            InvalidSourceError: If the THEN path is not a placeholder path
            RuleSyntaxError: If the chain cannot be serialized
        """
        self.check_source(rule.source)

        # Serialize first so a bad chain leaves the document untouched
        expression = RuleGrammar.format_expression(rule.conditions, rule.source)

        parent, key = self.resolve_parent(document, rule.target)

        carrier = parent.get(key)
        if not isinstance(carrier, dict):
            carrier = {}

        type_hint = self.config.type_hints.get(key)
        if type_hint and "@type" not in carrier:
            carrier["@type"] = type_hint

        result_property = rule.result_property or self.config.result_property
        carrier[f"{result_property}{self.config.rule_suffix}"] = expression

        parent[key] = carrier
        parent[self.comment_key("rule", rule.id)] = (
            f"// Mapped to {key} with {len(rule.conditions)} condition(s)."
        )

    @staticmethod
    def check_source(source: str) -> None:
        """Reject sources the renderer and parser would not read as [path] (whitespace, brackets, NULL)."""
        if RuleGrammar.placeholder_path(RuleGrammar.make_placeholder(source)) is None:
            raise InvalidSourceError(f"Source {source!r} is not a valid data path")

    def comment_key(self, label: str, rule_id: int) -> str:
        return f"{self.config.comment_prefix}_{label}_{rule_id}"
