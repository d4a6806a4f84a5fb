"""
Rule Compiler - Orchestrates mapping set → compiled document generation

Integrates:
- PropertyBuilder: property-level construction
- RuleGrammar: conditional expression serialization
- Template skeletons: the fixed document every compile starts from
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import EngineConfig
from dsi.builder.property_builder import (
    InvalidSourceError,
    PropertyBuilder,
    ReservedTargetError,
    TargetConflictError,
)
from dsi.parser.rule_grammar import RuleSyntaxError
from dsi.schema.models import CompileSkip, MappingSet
from dsi.schema.skeleton import DEFAULT_SKELETON

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """Compiled document plus the rules left out of it"""
    document: Dict[str, Any]
    skipped: List[CompileSkip] = field(default_factory=list)
    compiled_count: int = 0


class RuleCompiler:
    """
    Compiles a mapping set into a document with embedded rules

    Usage:
    ```python
    mappings = MappingSet.from_list([
        {"id": 1, "source": "current_price", "target": "price", "kind": "PlainText"},
    ])

    result = RuleCompiler().compile(mappings)
    # result.document: {"@context": ..., "price": "[current_price]", "_comment_id_1": ...}
    ```
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize RuleCompiler

        Args:
            config: Engine configuration
        """
        self.config = config or EngineConfig()
        self.property_builder = PropertyBuilder(self.config)

    def compile(
        self,
        mapping_set: MappingSet,
        skeleton: Optional[Dict[str, Any]] = None,
    ) -> CompileResult:
        """
        Compile a mapping set

        Args:
            mapping_set: Ordered mapping rules
            skeleton: Starting document (defaults to the schema.org Product skeleton).
                      It is copied, never modified.

        Returns:
            CompileResult with the document and every skipped rule
        """
        document = copy.deepcopy(skeleton if skeleton is not None else DEFAULT_SKELETON)
        result = CompileResult(document=document)

        for rule in mapping_set:
            if not rule.source:
                self._skip(result, rule.id, "missing_source", "Rule has no source path")
                continue

            if not rule.target:
                self._skip(result, rule.id, "missing_target", "Rule has no target property")
                continue

            try:
                if rule.is_conditional and rule.conditions:
                    self.property_builder.build_carrier(document, rule)
                else:
                    if rule.is_conditional:
                        logger.info(
                            f"Rule {rule.id} is conditional without conditions; "
                            f"compiling as plain substitution"
                        )
                    self.property_builder.build_placeholder(document, rule)
            except InvalidSourceError as e:
                self._skip(result, rule.id, "invalid_source", str(e))
                continue
            except ReservedTargetError as e:
                self._skip(result, rule.id, "reserved_target", str(e))
                continue
            except TargetConflictError as e:
                self._skip(result, rule.id, "target_conflict", str(e))
                continue
            except RuleSyntaxError as e:
                self._skip(result, rule.id, "invalid_condition", str(e))
                continue

            result.compiled_count += 1

        logger.info(
            f"Compiled {result.compiled_count} of {len(mapping_set)} rules "
            f"({len(result.skipped)} skipped)"
        )
        return result

    @staticmethod
    def _skip(result: CompileResult, rule_id: int, reason: str, message: str) -> None:
        logger.warning(f"Skipping rule {rule_id}: {message}")
        result.skipped.append(CompileSkip(rule_id=rule_id, reason=reason, message=message))


# ============================================================================
# Compiler convenience functions
# ============================================================================


def compile_mappings(
    mapping_set: MappingSet,
    skeleton: Optional[Dict[str, Any]] = None,
    config: Optional[EngineConfig] = None,
) -> Dict[str, Any]:
    """Compile a mapping set and return only the document."""
    return RuleCompiler(config).compile(mapping_set, skeleton).document
