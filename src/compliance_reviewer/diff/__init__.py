"""
Diff Processing

Diff 정규화 및 변경 파일 추출 모듈
"""

from .normalizer import DiffNormalizer, ParseState, normalize_diff, extract_diff_files, validate_diff
from .changes import (
    parse_changed_files,
    is_code_file,
    is_test_file,
    collect_added_lines_by_file,
    collect_added_hunks_by_file,
)

__all__ = [
    "DiffNormalizer",
    "ParseState",
    "normalize_diff",
    "extract_diff_files",
    "validate_diff",
    "parse_changed_files",
    "is_code_file",
    "is_test_file",
    "collect_added_lines_by_file",
    "collect_added_hunks_by_file",
]
