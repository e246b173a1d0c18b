"""Tree-sitter parser wrapper.

Provides a unified interface for tree-sitter parsing across the languages
the syntax layer understands.

Usage:
    parser = TreeSitterParser()
    tree = parser.parse(code_bytes, "javascript")
    if tree is not None:
        walk(tree.root_node)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import tree_sitter
import tree_sitter_javascript
import tree_sitter_python
import tree_sitter_typescript

from ..logging_config import get_logger

logger = get_logger(__name__)

# Grammar name -> (module, factory attribute)
_LANGUAGE_FACTORIES: dict[str, tuple[Any, str]] = {
    "javascript": (tree_sitter_javascript, "language"),
    "typescript": (tree_sitter_typescript, "language_typescript"),
    "tsx": (tree_sitter_typescript, "language_tsx"),
    "python": (tree_sitter_python, "language"),
}


if TYPE_CHECKING:

    class Node:
        text: bytes | None
        type: str
        start_point: tuple[int, int]
        end_point: tuple[int, int]
        children: list[Node]
        named_children: list[Node]
        parent: Node | None

        def child_by_field_name(self, name: str) -> Node | None: ...

    class Tree:
        root_node: Node


def get_supported_languages() -> list[str]:
    """Get list of languages with bundled grammars."""
    return list(_LANGUAGE_FACTORIES.keys())


class TreeSitterParser:
    """Wrapper around tree-sitter for multi-language parsing.

    A grammar that fails to initialize is left out; ``parse()`` then
    returns None for that language.
    """

    def __init__(self) -> None:
        self._parsers: dict[str, Any] = {}

        for lang_name, (module, factory_name) in _LANGUAGE_FACTORIES.items():
            try:
                raw_lang = getattr(module, factory_name)()
                # tree-sitter >= 0.23 returns PyCapsule; wrap in Language()
                lang_obj = tree_sitter.Language(raw_lang)
                self._parsers[lang_name] = tree_sitter.Parser(lang_obj)
            except Exception as e:
                logger.debug("Grammar %s unavailable: %s", lang_name, e)

    def parse(self, code: bytes, language: str) -> Tree | None:
        """Parse code and return syntax tree.

        Args:
            code: Source code as bytes
            language: Language name (e.g., "javascript")

        Returns:
            Tree object if successful, None if language not supported
        """
        parser = self._parsers.get(language)
        if parser is None:
            return None

        try:
            result: Tree | None = parser.parse(code)
            return result
        except Exception as e:
            logger.debug("tree-sitter parse failed for %s: %s", language, e)
            return None

    def is_language_supported(self, language: str) -> bool:
        return language in self._parsers
