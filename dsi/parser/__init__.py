"""
Rule Parser Module

Shared rule grammar plus the document → mapping set parser.
"""

from .rule_grammar import GRAMMAR_VERSION, RuleExpression, RuleGrammar, RuleSyntaxError
from .document_parser import DocumentParser, parse_document

__all__ = [
    "GRAMMAR_VERSION",
    "RuleExpression",
    "RuleGrammar",
    "RuleSyntaxError",
    "DocumentParser",
    "parse_document",
]
