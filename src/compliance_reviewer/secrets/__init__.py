"""
Secret Detection

패턴 및 엔트로피 기반 시크릿 탐지 모듈
"""

from .patterns import (
    DEFAULT_SECRET_PATTERNS,
    get_default_secret_patterns,
    calculate_entropy,
    validate_secret_pattern,
)
from .scanner import SecretScanner, scan_for_secrets, scan_files, scan_diff_for_secrets

__all__ = [
    "DEFAULT_SECRET_PATTERNS",
    "get_default_secret_patterns",
    "calculate_entropy",
    "validate_secret_pattern",
    "SecretScanner",
    "scan_for_secrets",
    "scan_files",
    "scan_diff_for_secrets",
]
