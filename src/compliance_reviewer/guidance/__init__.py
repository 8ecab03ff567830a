"""
Guidance Processing

가이드 문서 요약, 품질 게이트 추론 및 번들 가이드 팩 모듈
"""

from .summarizer import RuleSummarizer, summarize_rules, infer_quality_gates
from .bundled import (
    BundledPackLoader,
    list_bundled,
    get_bundled_pack,
    validate_bundled_pack,
    validate_all_bundled_packs,
)

__all__ = [
    "RuleSummarizer",
    "summarize_rules",
    "infer_quality_gates",
    "BundledPackLoader",
    "list_bundled",
    "get_bundled_pack",
    "validate_bundled_pack",
    "validate_all_bundled_packs",
]
