"""
DSI Rule Engine

Bidirectional mapping-rule engine: compiles field mappings into a JSON-LD
document with embedded rule expressions, renders that document against a data
record, and parses edited documents back into mappings.

Usage:
    from dsi import MappingSet, compile_mappings, render_document, parse_document

    document = compile_mappings(mapping_set)
    output = render_document(document, {"current_price": "49.99"})
    recovered = parse_document(document)
"""

from .engine import compile_mappings, evaluate, parse_document, render_document
from .schema.models import (
    # Enums
    MappingKind,
    Operator,
    Join,

    # Data classes
    Condition,
    MappingRule,
    MappingSet,
    CompileSkip,
    ParseFailure,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "compile_mappings",
    "render_document",
    "parse_document",
    "evaluate",

    # Models
    "MappingKind",
    "Operator",
    "Join",
    "Condition",
    "MappingRule",
    "MappingSet",
    "CompileSkip",
    "ParseFailure",
]
