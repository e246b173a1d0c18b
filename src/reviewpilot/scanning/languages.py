"""File extension → syntax-tree language mapping."""

from pathlib import PurePosixPath
from typing import Optional

EXTENSION_LANGUAGES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".pyi": "python",
}


def detect_language(path: str) -> Optional[str]:
    """Return the grammar name for ``path``, or None when unsupported."""
    suffix = PurePosixPath(path.replace("\\", "/")).suffix.lower()
    return EXTENSION_LANGUAGES.get(suffix)
