"""Parser de documentos compilados de volta para regras de mapeamento."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from config import EngineConfig
from dsi.parser.rule_grammar import RuleGrammar, RuleSyntaxError
from dsi.schema.models import MappingKind, MappingRule, MappingSet, ParseFailure

logger = logging.getLogger(__name__)


@dataclass
class _ParseState:
    rules: List[MappingRule] = field(default_factory=list)
    carriers_seen: int = 0
    failed_carriers: List[str] = field(default_factory=list)

    def next_id(self) -> int:
        return len(self.rules) + 1


class DocumentParser:
    """Recovers a mapping set from a (possibly hand-edited) document."""

    def __init__(self, config: Optional[EngineConfig] = None):
        """Initialize parser with optional engine configuration."""
        self.config = config or EngineConfig()

    def parse(self, document: Union[str, Dict[str, Any]]) -> Union[MappingSet, ParseFailure]:
        """
        Parse a compiled document.

        Args:
            document: Document object, or its JSON text

        Returns:
            MappingSet: Recovered rules with fresh sequential ids
            ParseFailure: If the document is not an object, or nothing could be
                          recovered from a non-trivial document
        """
        if isinstance(document, str):
            try:
                document = json.loads(document)
            except ValueError as e:
                logger.error(f"Error parsing document JSON: {e}")
                return ParseFailure(
                    reason=ParseFailure.INVALID_DOCUMENT,
                    message=f"Invalid JSON: {e}",
                )

        if not isinstance(document, dict):
            return ParseFailure(
                reason=ParseFailure.INVALID_DOCUMENT,
                message=f"Document must be a JSON object, got {type(document).__name__}",
            )

        state = _ParseState()
        self._walk(document, "", state)

        property_count = self.count_properties(document)

        if not state.rules:
            if state.carriers_seen and len(state.failed_carriers) == state.carriers_seen:
                logger.warning("Every rule carrier failed to parse; keeping prior mappings is advised")
                return ParseFailure(
                    reason=ParseFailure.NO_VALID_RULES,
                    message=f"None of {state.carriers_seen} rule carrier(s) could be parsed",
                    property_count=property_count,
                    failed_carriers=state.failed_carriers,
                )

            if property_count > self.config.trivial_property_limit:
                logger.warning(
                    f"Parsing resulted in no mappings for a document with {property_count} properties"
                )
                return ParseFailure(
                    reason=ParseFailure.DEGENERATE_DOCUMENT,
                    message=f"No mappings found in a document with {property_count} properties",
                    property_count=property_count,
                    failed_carriers=state.failed_carriers,
                )

        if state.failed_carriers:
            logger.warning(f"Skipped {len(state.failed_carriers)} malformed rule carrier(s)")

        return MappingSet(rules=state.rules)

    def count_properties(self, document: Dict[str, Any]) -> int:
        """Top-level properties, not counting @-keywords and comment entries."""
        return sum(
            1 for key in document
            if not key.startswith("@") and not key.startswith(self.config.comment_prefix)
        )

    def carrier_keys(self, obj: Dict[str, Any]) -> List[str]:
        suffix = self.config.rule_suffix
        return [
            key for key in obj
            if isinstance(key, str) and key.endswith(suffix) and len(key) > len(suffix)
        ]

    def _walk(self, obj: Dict[str, Any], prefix: str, state: _ParseState) -> None:
        """Depth-first walk collecting placeholders and carriers in discovery order."""
        for key, value in obj.items():
            if key.startswith("@") or key.startswith(self.config.comment_prefix):
                continue

            target = f"{prefix}.{key}" if prefix else key

            if isinstance(value, str):
                source = RuleGrammar.placeholder_path(value)
                if source:
                    state.rules.append(
                        MappingRule(
                            id=state.next_id(),
                            source=source,
                            target=target,
                            kind=MappingKind.PLAIN_TEXT,
                        )
                    )
                continue

            if not isinstance(value, dict):
                # Arrays and scalars are not addressable targets
                continue

            carriers = self.carrier_keys(value)
            if not carriers:
                self._walk(value, target, state)
                continue

            result_properties = set()
            for carrier_key in carriers:
                state.carriers_seen += 1
                result_property = carrier_key[:-len(self.config.rule_suffix)]
                result_properties.add(result_property)

                try:
                    expression = RuleGrammar.parse_expression(value[carrier_key])
                except RuleSyntaxError as e:
                    logger.warning(f"Skipping rule at '{target}.{carrier_key}': {e}")
                    state.failed_carriers.append(f"{target}.{carrier_key}")
                    continue

                state.rules.append(
                    MappingRule(
                        id=state.next_id(),
                        source=expression.source,
                        target=target,
                        kind=MappingKind.CONDITIONAL,
                        conditions=expression.conditions,
                        result_property=(
                            None if result_property == self.config.result_property
                            else result_property
                        ),
                    )
                )

            nested = {
                k: v for k, v in value.items()
                if k not in carriers and k not in result_properties
            }
            self._walk(nested, target, state)


# ============================================================================
# Parser convenience functions
# ============================================================================


def parse_document(
    document: Union[str, Dict[str, Any]],
    config: Optional[EngineConfig] = None,
) -> Union[MappingSet, ParseFailure]:
    """Parse a document with a fresh parser."""
    return DocumentParser(config).parse(document)
