"""
Rule Grammar - Serializer/deserializer for embedded conditional expressions

Wire format (version 1):

    IF (<field> <op> <value> [AND|OR <field> <op> <value> ...]) THEN [<path>] ELSE [NULL]

- Operators: >, <, ==, !=, contains, is-empty (unary, no value)
- Values are bare words, or double-quoted JSON strings when they are empty,
  contain whitespace or grammar punctuation, or collide with a keyword
- On read, bare multi-word values, the legacy "is empty" spelling and a
  trailing END keyword are accepted

Placeholders are leaf strings of the form [<path>].
"""

import json
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dsi.schema.models import Condition, Join, Operator, canonical_operator, normalize_chain

GRAMMAR_VERSION = 1

JOIN_KEYWORDS = {"AND": Join.AND, "OR": Join.OR}
END_KEYWORD = "END"
RESERVED_WORDS = {"IF", "THEN", "ELSE", "NULL", "AND", "OR", END_KEYWORD}
NULL_TOKEN = "NULL"

VALID_OPERATORS = {op.value for op in Operator}
WORD_OPERATORS = {Operator.CONTAINS.value, Operator.IS_EMPTY.value}


class RuleSyntaxError(ValueError):
    """Raised when a rule expression does not follow the grammar."""


@dataclass
class RuleExpression:
    """Parsed form of a conditional expression"""

    conditions: List[Condition] = field(default_factory=list)
    source: str = ""

    def to_string(self) -> str:
        return RuleGrammar.format_expression(self.conditions, self.source)


class RuleGrammar:
    """Tokenizer, parser and formatter for the rule expression grammar"""

    # IF (<block>) THEN [<source>] ELSE [NULL]
    ENVELOPE_PATTERN = re.compile(
        r'^\s*IF\s*\((?P<block>.*)\)\s*THEN\s*\[(?P<source>[^\[\]]*)\]\s*ELSE\s*\[NULL\]\s*$',
        re.DOTALL,
    )

    # Placeholder: [product.metafields.custom.isbn]
    PLACEHOLDER_PATTERN = re.compile(r'^\[(?P<path>[^\[\]\s]+)\]$')

    TOKEN_PATTERN = re.compile(
        r'(?P<string>"(?:[^"\\]|\\.)*")'
        r'|(?P<op>==|!=|<|>)'
        r'|(?P<word>[^\s"<>=!]+|[=!])'
    )

    # Characters that force a value to be quoted
    QUOTE_TRIGGER = re.compile(r'[\s"<>=!()\[\]\\]')

    FIELD_PATTERN = re.compile(r'^[^\s"<>=!()\[\]]+$')

    # ------------------------------------------------------------------
    # Placeholders
    # ------------------------------------------------------------------

    @classmethod
    def placeholder_path(cls, value) -> Optional[str]:
        """Return the data path of a placeholder string, or None."""
        if not isinstance(value, str):
            return None

        match = cls.PLACEHOLDER_PATTERN.match(value)
        if not match or match.group("path") == NULL_TOKEN:
            return None

        return match.group("path")

    @staticmethod
    def make_placeholder(path: str) -> str:
        return f"[{path}]"

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    @classmethod
    def format_value(cls, value: str) -> str:
        """Quote a literal when a bare word would be ambiguous."""
        value = "" if value is None else str(value)
        if value == "" or value in RESERVED_WORDS or cls.QUOTE_TRIGGER.search(value):
            return json.dumps(value, ensure_ascii=False)
        return value

    @classmethod
    def format_condition(cls, condition: Condition) -> str:
        """
        Format a single predicate

        Raises:
            RuleSyntaxError: If the field or operator cannot be written
        """
        field_name = (condition.field or "").strip()
        if not cls.FIELD_PATTERN.match(field_name) or field_name in RESERVED_WORDS:
            raise RuleSyntaxError(f"Invalid condition field: {condition.field!r}")

        operator = canonical_operator(condition.operator)
        if operator not in VALID_OPERATORS:
            raise RuleSyntaxError(f"Invalid condition operator: {condition.operator!r}")

        if operator == Operator.IS_EMPTY.value:
            return f"{field_name} {operator}"

        return f"{field_name} {operator} {cls.format_value(condition.value)}"

    @classmethod
    def format_expression(cls, conditions: List[Condition], source: str) -> str:
        """
        Serialize a condition chain and result path

        Example:
            review_count > 5 AND average_rating > 4.5, average_rating
            -> IF (review_count > 5 AND average_rating > 4.5) THEN [average_rating] ELSE [NULL]

        Raises:
            RuleSyntaxError: If the chain is empty or a condition is invalid
        """
        if not conditions:
            raise RuleSyntaxError("Cannot format an empty condition chain")

        source = (source or "").strip()
        if not source or cls.PLACEHOLDER_PATTERN.match(f"[{source}]") is None:
            raise RuleSyntaxError(f"Invalid result path: {source!r}")

        parts = []
        for condition in normalize_chain(conditions):
            parts.append(cls.format_condition(condition))
            if condition.join != Join.TERMINAL:
                parts.append(Join(condition.join).value)

        return f"IF ({' '.join(parts)}) THEN [{source}] ELSE [{NULL_TOKEN}]"

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def tokenize(cls, block: str) -> List[Tuple[str, str]]:
        """
        Split a condition block into (kind, text) tokens

        Kinds are "string", "op" and "word".

        Raises:
            RuleSyntaxError: On text that is not a token (e.g. an open quote)
        """
        tokens = []
        position = 0
        length = len(block)

        while position < length:
            if block[position].isspace():
                position += 1
                continue

            match = cls.TOKEN_PATTERN.match(block, position)
            if not match:
                raise RuleSyntaxError(
                    f"Unexpected character at offset {position}: {block[position:position + 10]!r}"
                )

            tokens.append((match.lastgroup, match.group(0)))
            position = match.end()

        return tokens

    @classmethod
    def parse_expression(cls, text: str) -> RuleExpression:
        """
        Parse a rule expression string

        Returns:
            RuleExpression with the final condition forced to TERMINAL

        Raises:
            RuleSyntaxError: If the envelope or the condition block is malformed
        """
        if not isinstance(text, str):
            raise RuleSyntaxError(f"Rule expression must be a string, got {type(text).__name__}")

        match = cls.ENVELOPE_PATTERN.match(text)
        if not match:
            raise RuleSyntaxError(f"Rule envelope does not match: {text[:60]!r}")

        source = match.group("source").strip()
        if not source or cls.PLACEHOLDER_PATTERN.match(f"[{source}]") is None:
            raise RuleSyntaxError(f"Invalid result path: {source!r}")

        conditions = cls.parse_conditions(match.group("block"))
        return RuleExpression(conditions=conditions, source=source)

    @classmethod
    def parse_conditions(cls, block: str) -> List[Condition]:
        """Parse the text between IF ( and ) into a condition chain."""
        tokens = cls.tokenize(block)
        if not tokens:
            raise RuleSyntaxError("Empty condition block")

        conditions: List[Condition] = []
        index = 0
        count = len(tokens)

        while index < count:
            kind, text = tokens[index]
            if kind != "word" or text in RESERVED_WORDS:
                raise RuleSyntaxError(f"Expected a field name, got {text!r}")
            field_name = text
            index += 1

            operator, index = cls._read_operator(tokens, index)

            value_tokens = []
            while index < count and not (tokens[index][0] == "word" and tokens[index][1] in JOIN_KEYWORDS):
                if tokens[index] == ("word", END_KEYWORD):
                    break
                value_tokens.append(tokens[index])
                index += 1

            if operator == Operator.IS_EMPTY.value:
                value = ""
            else:
                value = cls._read_value(value_tokens)

            join = Join.TERMINAL
            if index < count:
                keyword = tokens[index][1]
                index += 1
                if keyword == END_KEYWORD:
                    if index < count:
                        raise RuleSyntaxError("END must close the condition chain")
                else:
                    join = JOIN_KEYWORDS[keyword]

            conditions.append(Condition(field_name, operator, value, join))

        return normalize_chain(conditions)

    @staticmethod
    def _read_operator(tokens: List[Tuple[str, str]], index: int) -> Tuple[str, int]:
        if index >= len(tokens):
            raise RuleSyntaxError("Condition is missing an operator")

        kind, text = tokens[index]
        if kind == "op":
            return text, index + 1

        if kind == "word" and text in WORD_OPERATORS:
            return text, index + 1

        # Legacy two-word spelling
        if kind == "word" and text == "is":
            if index + 1 < len(tokens) and tokens[index + 1] == ("word", "empty"):
                return Operator.IS_EMPTY.value, index + 2

        raise RuleSyntaxError(f"Unknown operator: {text!r}")

    @staticmethod
    def _read_value(value_tokens: List[Tuple[str, str]]) -> str:
        if not value_tokens:
            return ""

        if len(value_tokens) == 1 and value_tokens[0][0] == "string":
            try:
                return json.loads(value_tokens[0][1])
            except ValueError as e:
                raise RuleSyntaxError(f"Invalid quoted value {value_tokens[0][1]!r}: {e}")

        if any(kind == "string" for kind, _ in value_tokens):
            raise RuleSyntaxError("Quoted value must stand alone")

        return " ".join(text for _, text in value_tokens)
