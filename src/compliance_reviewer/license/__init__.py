"""
License Headers

라이선스 헤더 탐지, 검증 및 생성 모듈
"""

from .templates import (
    DEFAULT_LICENSE_TEMPLATES,
    LANGUAGE_COMMENT_STYLES,
    get_default_license_templates,
    get_supported_languages,
    get_comment_style,
    get_template,
)
from .detector import (
    extract_license_header,
    normalize_license_text,
    calculate_similarity,
    detect_license,
    generate_license_header,
    validate_license_header,
    validate_license_headers,
    check_license_compatibility,
)

__all__ = [
    "DEFAULT_LICENSE_TEMPLATES",
    "LANGUAGE_COMMENT_STYLES",
    "get_default_license_templates",
    "get_supported_languages",
    "get_comment_style",
    "get_template",
    "extract_license_header",
    "normalize_license_text",
    "calculate_similarity",
    "detect_license",
    "generate_license_header",
    "validate_license_header",
    "validate_license_headers",
    "check_license_compatibility",
]
