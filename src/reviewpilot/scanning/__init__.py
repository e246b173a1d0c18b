"""Syntax-tree scanning: tree-sitter parsing and structural findings."""

from .languages import EXTENSION_LANGUAGES, detect_language
from .syntax_findings import SyntaxAnalyzer, SyntaxFinding, SyntaxReport
from .treesitter_parser import TreeSitterParser, get_supported_languages

__all__ = [
    "EXTENSION_LANGUAGES",
    "SyntaxAnalyzer",
    "SyntaxFinding",
    "SyntaxReport",
    "TreeSitterParser",
    "detect_language",
    "get_supported_languages",
]
