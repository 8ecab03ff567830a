"""
Compliance Data Models

컴플라이언스 평가 결과 및 체크리스트 관련 데이터 모델들
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


FINDING_STATUSES = {'pass', 'fail', 'warn', 'na'}
GENERIC_LEVELS = {'info', 'warn', 'fail'}
RULE_CATEGORIES = {
    'security', 'testing', 'licensing', 'style', 'documentation', 'performance', 'compliance'
}
RULE_PRIORITIES = {'critical', 'high', 'medium', 'low'}


@dataclass(frozen=True)
class ChecklistRule:
    """체크리스트 규칙"""
    id: str
    text: str
    category: str = 'compliance'
    priority: str = 'medium'
    section: Optional[str] = None

    def __post_init__(self):
        """데이터 검증"""
        if not self.id.strip():
            raise ValueError("Rule id cannot be empty")
        if self.category not in RULE_CATEGORIES:
            raise ValueError(f"Invalid category: {self.category}")
        if self.priority not in RULE_PRIORITIES:
            raise ValueError(f"Invalid priority: {self.priority}")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'text': self.text,
            'category': self.category,
            'priority': self.priority,
        }
        if self.section:
            data['section'] = self.section
        return data


@dataclass(frozen=True)
class ComplianceFinding:
    """규칙 또는 시크릿 단위 평가 결과"""
    id: str
    status: str  # 'pass', 'fail', 'warn', 'na'
    note: str
    file: Optional[str] = None
    line: Optional[int] = None

    def __post_init__(self):
        """데이터 검증"""
        if self.status not in FINDING_STATUSES:
            raise ValueError(f"Invalid status: {self.status}")
        if self.line is not None and self.line <= 0:
            raise ValueError("Line number must be positive")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'id': self.id, 'status': self.status, 'note': self.note}
        if self.file is not None:
            data['file'] = self.file
        if self.line is not None:
            data['line'] = self.line
        return data


@dataclass(frozen=True)
class GenericFinding:
    """규칙에 묶이지 않는 일반 평가 결과"""
    level: str  # 'info', 'warn', 'fail'
    note: str

    def __post_init__(self):
        """데이터 검증"""
        if self.level not in GENERIC_LEVELS:
            raise ValueError(f"Invalid level: {self.level}")

    def to_dict(self) -> Dict[str, Any]:
        return {'level': self.level, 'note': self.note}


@dataclass
class ComplianceSummary:
    """평가 요약 카운트"""
    files_changed: int = 0
    code_files_changed: int = 0
    test_files_changed: int = 0
    secrets_detected: int = 0
    license_violations: int = 0
    large_files: List[str] = field(default_factory=list)
    directives_applied: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'filesChanged': self.files_changed,
            'codeFilesChanged': self.code_files_changed,
            'testFilesChanged': self.test_files_changed,
            'secretsDetected': self.secrets_detected,
            'licenseViolations': self.license_violations,
            'largeFiles': list(self.large_files),
            'directivesApplied': list(self.directives_applied),
        }


@dataclass
class ComplianceResult:
    """컴플라이언스 평가 결과 전체"""
    summary: ComplianceSummary
    findings: List[ComplianceFinding] = field(default_factory=list)
    generic_findings: List[GenericFinding] = field(default_factory=list)
    directives_raw: List[str] = field(default_factory=list)
    secret_findings: List[ComplianceFinding] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return any(g.level == 'fail' for g in self.generic_findings) or any(
            f.status == 'fail' for f in self.findings + self.secret_findings
        )

    @property
    def has_warnings(self) -> bool:
        return any(g.level == 'warn' for g in self.generic_findings) or any(
            f.status == 'warn' for f in self.findings + self.secret_findings
        )

    def get_generic_findings_by_level(self, level: str) -> List[GenericFinding]:
        """특정 레벨의 일반 평가 결과 반환"""
        return [g for g in self.generic_findings if g.level == level]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary.to_dict(),
            'findings': [f.to_dict() for f in self.findings],
            'genericFindings': [g.to_dict() for g in self.generic_findings],
            'directives': {'raw': list(self.directives_raw)},
            'secretFindings': [f.to_dict() for f in self.secret_findings],
        }


# Pydantic models for API validation
class ChecklistRuleRequest(BaseModel):
    id: str
    text: str

    def to_rule(self) -> ChecklistRule:
        return ChecklistRule(id=self.id, text=self.text)


class ComplianceRequest(BaseModel):
    """API 요청용 컴플라이언스 평가 모델"""
    model_config = ConfigDict(populate_by_name=True)

    diff: str
    checklist: Optional[List[ChecklistRuleRequest]] = None
    require_tests: bool = Field(True, validation_alias=AliasChoices('requireTests', 'require_tests'))
    max_file_bytes: int = Field(500_000, validation_alias=AliasChoices('maxFileBytes', 'max_file_bytes'))
    guidance_text: str = Field('', validation_alias=AliasChoices('guidanceText', 'guidance_text'))
    pr_labels: List[str] = Field(default_factory=list, validation_alias=AliasChoices('prLabels', 'pr_labels'))
    pr_title: str = Field('', validation_alias=AliasChoices('prTitle', 'pr_title'))
    file_contents: Optional[Dict[str, str]] = Field(
        None, validation_alias=AliasChoices('fileContents', 'file_contents')
    )
    owner: Optional[str] = None
    repo: Optional[str] = None
    ref: Optional[str] = None

    @field_validator('diff')
    @classmethod
    def validate_diff(cls, v):
        if not v:
            raise ValueError('diff required')
        return v

    @field_validator('max_file_bytes')
    @classmethod
    def validate_max_file_bytes(cls, v):
        if v <= 0:
            raise ValueError('maxFileBytes must be positive')
        return v

    @property
    def has_repository(self) -> bool:
        return bool(self.owner and self.repo and self.ref)


class SummarizeRulesRequest(BaseModel):
    """API 요청용 규칙 요약 모델"""
    model_config = ConfigDict(populate_by_name=True)

    markdown: str = Field(validation_alias=AliasChoices('markdown', 'guidanceText', 'guidance_text'))
    max_items: int = Field(200, validation_alias=AliasChoices('maxItems', 'max_items'))

    @field_validator('max_items')
    @classmethod
    def validate_max_items(cls, v):
        if v <= 0:
            raise ValueError('maxItems must be positive')
        return v


class QualityGatesRequest(BaseModel):
    """API 요청용 품질 게이트 추론 모델 (paths 또는 files[].path)"""
    paths: List[str] = Field(default_factory=list)
    files: List[Dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode='after')
    def merge_file_paths(self):
        for entry in self.files:
            path = entry.get('path')
            if isinstance(path, str) and path not in self.paths:
                self.paths.append(path)
        return self


class RepositoryRequest(BaseModel):
    """API 요청용 저장소 참조 모델"""
    owner: str
    repo: str
    ref: str

    @field_validator('owner', 'repo', 'ref')
    @classmethod
    def validate_not_empty(cls, v):
        if not v.strip():
            raise ValueError('owner, repo and ref cannot be empty')
        return v


class FileContentsRequest(RepositoryRequest):
    """API 요청용 파일 내용 조회 모델"""
    paths: List[str]

    @field_validator('paths')
    @classmethod
    def validate_paths(cls, v):
        if not v:
            raise ValueError('At least one path is required')
        return v
