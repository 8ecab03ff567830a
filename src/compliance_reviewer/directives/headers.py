"""
Per-language license header patterns

Maps file extensions to language tags and expands a single canonical
header regex into comment-aware wrappers for each language.
"""

import os
import re
from typing import Dict, Optional, Pattern


EXTENSION_LANGUAGES = {
    'js': 'js', 'jsx': 'js',
    'ts': 'ts', 'tsx': 'ts',
    'py': 'py',
    'go': 'go',
    'java': 'java',
    'kt': 'kt',
    'rb': 'rb',
    'php': 'php',
    'cs': 'cs',
    'cpp': 'cpp', 'cc': 'cpp', 'cxx': 'cpp',
    'c': 'c',
    'rs': 'rs',
    'sh': 'sh',
    'swift': 'swift',
}

_BLOCK = r'^/\*[\s\S]*?{s}[\s\S]*?\*/'
_BLOCK_OR_SLASHES = r'^(?:/\*[\s\S]*?\*/|(?://.*\n)+).*{s}'

LANGUAGE_WRAPPERS = {
    'js': _BLOCK,
    'ts': _BLOCK,
    'java': _BLOCK,
    'kt': _BLOCK,
    'cs': _BLOCK,
    'swift': _BLOCK,
    'py': r'^(?:#!.*\n)?(?:#.*\n)*#.*{s}',
    'go': _BLOCK_OR_SLASHES,
    'cpp': _BLOCK_OR_SLASHES,
    'c': _BLOCK_OR_SLASHES,
    'rb': r'^(?:#.*\n)+.*{s}',
    'php': r'^(?:<\?php\s*)?(?:/\*[\s\S]*?\*/|(?://|#).*\n)+.*{s}',
    'rs': r'^(?:(?://.*\n)+|/\*[\s\S]*?\*/)\s*.*{s}',
    'sh': r'^(?:#!.*\n)?(?:#.*\n)+.*{s}',
}


def ext_to_lang(file_path: str) -> Optional[str]:
    """Return the language tag for a file's extension, or None."""
    ext = os.path.splitext(file_path.lower())[1].lstrip('.')
    return EXTENSION_LANGUAGES.get(ext)


def canonical_to_lang_regex(canonical: Pattern[str]) -> Dict[str, Pattern[str]]:
    """
    Expand a canonical header regex into per-language patterns.

    Each wrapper anchors the canonical text inside the language's leading
    comment block; the canonical pattern's flags are kept.
    """
    return {
        lang: re.compile(wrapper.replace('{s}', canonical.pattern), canonical.flags)
        for lang, wrapper in LANGUAGE_WRAPPERS.items()
    }
