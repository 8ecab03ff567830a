"""
Directive Data Models

가이드 문서의 `[ASSERT] key: value` 정책 지시문 모델
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Pattern, Tuple, Union


class DirectiveKind(str, Enum):
    """지원하는 지시문 종류 (닫힌 집합)"""
    DISALLOW_PATH = 'disallow-path'
    FORBID_PATTERN = 'forbid-pattern'
    REQUIRE_FILE = 'require-file'
    REQUIRE_TESTS = 'require-tests'
    MAX_FILE_BYTES = 'max-file-bytes'
    REQUIRE_LABEL = 'require-label'
    BLOCK_COMMIT_TYPE = 'block-commit-type'
    ENFORCE_LICENSE_HEADER = 'enforce-license-header'
    ENFORCE_LICENSE_HEADER_EXACT = 'enforce-license-header-exact'
    ENFORCE_LICENSE_HEADER_LANG = 'enforce-license-header-lang'
    ENFORCE_LICENSE_HEADER_CANONICAL = 'enforce-license-header-canonical'
    DENY_IMPORT = 'deny-import'
    DENY_HEADER = 'deny-header'

    @classmethod
    def from_key(cls, key: str) -> Optional['DirectiveKind']:
        """키 문자열을 종류로 변환 (모르는 키는 None)"""
        try:
            return cls(key.strip().lower())
        except ValueError:
            return None


PATTERN_KINDS = frozenset({
    DirectiveKind.DISALLOW_PATH,
    DirectiveKind.FORBID_PATTERN,
    DirectiveKind.REQUIRE_FILE,
    DirectiveKind.REQUIRE_LABEL,
    DirectiveKind.BLOCK_COMMIT_TYPE,
    DirectiveKind.ENFORCE_LICENSE_HEADER,
    DirectiveKind.ENFORCE_LICENSE_HEADER_EXACT,
    DirectiveKind.ENFORCE_LICENSE_HEADER_CANONICAL,
    DirectiveKind.DENY_IMPORT,
    DirectiveKind.DENY_HEADER,
})


@dataclass(frozen=True)
class LangPattern:
    """언어 태그와 헤더 정규식 쌍"""
    lang: str
    pattern: Pattern[str]


DirectivePayload = Union[Pattern[str], bool, int, LangPattern]


@dataclass(frozen=True)
class Directive:
    """컴파일된 단일 지시문"""
    kind: DirectiveKind
    value: DirectivePayload
    raw: str = ''

    def __post_init__(self):
        """페이로드 타입 검증"""
        if self.kind is DirectiveKind.REQUIRE_TESTS:
            valid = isinstance(self.value, bool)
        elif self.kind is DirectiveKind.MAX_FILE_BYTES:
            valid = isinstance(self.value, int) and not isinstance(self.value, bool) and self.value > 0
        elif self.kind is DirectiveKind.ENFORCE_LICENSE_HEADER_LANG:
            valid = isinstance(self.value, LangPattern)
        else:
            valid = hasattr(self.value, 'search')
        if not valid:
            raise ValueError(f"Invalid payload for directive {self.kind.value}: {self.value!r}")


@dataclass
class DirectiveSet:
    """파싱된 지시문 모음"""
    directives: List[Directive] = field(default_factory=list)
    raw: List[str] = field(default_factory=list)

    def of_kind(self, kind: DirectiveKind) -> List[Directive]:
        return [d for d in self.directives if d.kind is kind]

    def has(self, kind: DirectiveKind) -> bool:
        return any(d.kind is kind for d in self.directives)

    def patterns(self, kind: DirectiveKind) -> List[Pattern[str]]:
        """정규식 지시문의 패턴 목록 (등장 순서)"""
        if kind not in PATTERN_KINDS:
            raise ValueError(f"Directive {kind.value} does not carry a pattern")
        return [d.value for d in self.of_kind(kind)]

    @property
    def require_tests(self) -> Optional[bool]:
        """마지막 require-tests 값 (없으면 None)"""
        values = self.of_kind(DirectiveKind.REQUIRE_TESTS)
        return values[-1].value if values else None

    @property
    def max_file_bytes(self) -> Optional[int]:
        values = self.of_kind(DirectiveKind.MAX_FILE_BYTES)
        return values[-1].value if values else None

    @property
    def lang_patterns(self) -> Dict[str, Pattern[str]]:
        """언어별 헤더 정규식 (같은 언어는 나중 것이 우선)"""
        result: Dict[str, Pattern[str]] = {}
        for directive in self.of_kind(DirectiveKind.ENFORCE_LICENSE_HEADER_LANG):
            result[directive.value.lang] = directive.value.pattern
        return result

    @property
    def canonical_pattern(self) -> Optional[Pattern[str]]:
        values = self.of_kind(DirectiveKind.ENFORCE_LICENSE_HEADER_CANONICAL)
        return values[-1].value if values else None

    def summary(self) -> List[Tuple[str, int]]:
        """종류별 개수 (디버그 로그용)"""
        counts: Dict[str, int] = {}
        for directive in self.directives:
            counts[directive.kind.value] = counts.get(directive.kind.value, 0) + 1
        return sorted(counts.items())

    def __len__(self) -> int:
        return len(self.directives)
