"""
Policy Directives

가이드 문서의 [ASSERT] 지시문 파싱 모듈
"""

from .parser import parse_directives, parse_directive, extract_directive_lines, compile_pattern, format_pattern
from .headers import ext_to_lang, canonical_to_lang_regex

__all__ = [
    "parse_directives",
    "parse_directive",
    "extract_directive_lines",
    "compile_pattern",
    "format_pattern",
    "ext_to_lang",
    "canonical_to_lang_regex",
]
