"""
Rule Compiler Module

Builds compiled documents from mapping sets with:
- Placeholder properties for plain mappings
- Rule-carrier objects for conditional mappings
- Nested targets and provenance comments
"""

from .rule_compiler import RuleCompiler, CompileResult, compile_mappings
from .property_builder import InvalidSourceError, PropertyBuilder, ReservedTargetError, TargetConflictError

__all__ = [
    "RuleCompiler",
    "CompileResult",
    "PropertyBuilder",
    "TargetConflictError",
    "ReservedTargetError",
    "InvalidSourceError",
    "compile_mappings",
]
