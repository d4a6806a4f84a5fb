"""
Rule Renderer - Materializes a compiled document against a data record

Supports:
- Placeholder substitution ([path] → record value, type preserved)
- Conditional carriers (IF (...) THEN [path] ELSE [NULL])
- Per-property degradation: an unresolved placeholder or a false/malformed
  rule removes only the property it belongs to
- Stripping of carrier and comment keys
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from config import EngineConfig
from dsi.evaluator.condition_evaluator import MISSING, evaluate_chain, resolve_path
from dsi.parser.rule_grammar import NULL_TOKEN, RuleGrammar, RuleSyntaxError

logger = logging.getLogger(__name__)

# Marker returned for values that must disappear from their parent
_REMOVE = object()


@dataclass
class RenderIssue:
    """One property the renderer could not resolve"""
    path: str
    kind: str  # "placeholder_missing", "condition_false", "malformed_rule", "invalid_document"
    detail: str = ""


@dataclass
class RenderReport:
    """Everything resolved by omission during a render pass"""
    issues: List[RenderIssue] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.issues)

    def add(self, path: str, kind: str, detail: str = "") -> None:
        self.issues.append(RenderIssue(path=path, kind=kind, detail=detail))

    def by_kind(self, kind: str) -> List[RenderIssue]:
        return [issue for issue in self.issues if issue.kind == kind]


class RuleRenderer:
    """Renders compiled documents"""

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize RuleRenderer

        Args:
            config: Engine configuration (carrier suffix, comment prefix, default value)
        """
        self.config = config or EngineConfig()

    def render(self, document: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
        """Render a compiled document; never raises."""
        rendered, _ = self.render_with_report(document, data)
        return rendered

    def render_with_report(
        self,
        document: Mapping[str, Any],
        data: Mapping[str, Any],
    ) -> Tuple[Dict[str, Any], RenderReport]:
        """
        Render a compiled document and report what was dropped

        Args:
            document: Compiled document (not modified)
            data: Data record (flat dotted keys or nested objects)

        Returns:
            (rendered document, report)
        """
        report = RenderReport()

        if not isinstance(document, Mapping):
            report.add("", "invalid_document", f"Expected an object, got {type(document).__name__}")
            return {}, report

        try:
            rendered = self._render_object(document, data, "", report)
        except Exception as e:
            logger.error(f"Unexpected error while rendering document: {e}")
            report.add("", "invalid_document", str(e))
            return {}, report

        if rendered is _REMOVE:
            return {}, report

        if report.partial:
            logger.debug(f"Render completed with {len(report.issues)} omitted properties")

        return rendered, report

    def is_carrier_key(self, key: str) -> bool:
        suffix = self.config.rule_suffix
        return isinstance(key, str) and key.endswith(suffix) and len(key) > len(suffix)

    def is_comment_key(self, key: str) -> bool:
        return isinstance(key, str) and key.startswith(self.config.comment_prefix)

    def _render_object(
        self,
        obj: Mapping[str, Any],
        data: Mapping[str, Any],
        path: str,
        report: RenderReport,
    ) -> Any:
        """Render an object; returns _REMOVE when a carrier rule fails"""
        results = {}

        for key, value in obj.items():
            if not self.is_carrier_key(key):
                continue

            carrier_path = self._join(path, key)
            try:
                expression = RuleGrammar.parse_expression(value)
            except RuleSyntaxError as e:
                logger.warning(f"Malformed rule at '{carrier_path}', dropping object: {e}")
                report.add(carrier_path, "malformed_rule", str(e))
                return _REMOVE

            if not evaluate_chain(expression.conditions, data):
                report.add(carrier_path, "condition_false", value)
                return _REMOVE

            result = resolve_path(data, expression.source)
            if result is MISSING:
                result = self.config.default_result_value

            results[key[:-len(self.config.rule_suffix)]] = copy.deepcopy(result)

        rendered = {}
        for key, value in obj.items():
            if self.is_comment_key(key):
                continue

            if key in results:
                continue

            if self.is_carrier_key(key):
                result_key = key[:-len(self.config.rule_suffix)]
                rendered[result_key] = results[result_key]
                continue

            child = self._render_value(value, data, self._join(path, key), report)
            if child is not _REMOVE:
                rendered[key] = child

        return rendered

    def _render_value(
        self,
        value: Any,
        data: Mapping[str, Any],
        path: str,
        report: RenderReport,
    ) -> Any:
        if isinstance(value, str):
            match = RuleGrammar.PLACEHOLDER_PATTERN.match(value)
            if not match:
                return value

            source = match.group("path")
            resolved = MISSING if source == NULL_TOKEN else resolve_path(data, source)
            if resolved is MISSING:
                report.add(path, "placeholder_missing", source)
                return _REMOVE

            return copy.deepcopy(resolved)

        if isinstance(value, Mapping):
            return self._render_object(value, data, path, report)

        if isinstance(value, list):
            items = []
            for index, item in enumerate(value):
                child = self._render_value(item, data, f"{path}[{index}]", report)
                if child is not _REMOVE:
                    items.append(child)
            return items

        return copy.deepcopy(value)

    @staticmethod
    def _join(path: str, key: str) -> str:
        return f"{path}.{key}" if path else key


# ============================================================================
# Renderer convenience functions
# ============================================================================


def render_document(
    document: Mapping[str, Any],
    data: Mapping[str, Any],
    config: Optional[EngineConfig] = None,
) -> Dict[str, Any]:
    """Render a compiled document with a fresh renderer."""
    return RuleRenderer(config).render(document, data)
