"""
Engine entry points

The four pure operations collaborators call:

    compile_mappings(mapping_set, skeleton)  -> compiled document
    render_document(document, data_record)   -> rendered document (never fails)
    parse_document(document)                 -> MappingSet | ParseFailure
    evaluate(condition, data_record)         -> bool
"""

from dsi.builder.rule_compiler import compile_mappings
from dsi.evaluator.condition_evaluator import evaluate
from dsi.parser.document_parser import parse_document
from dsi.renderer.rule_renderer import render_document

__all__ = [
    "compile_mappings",
    "render_document",
    "parse_document",
    "evaluate",
]
