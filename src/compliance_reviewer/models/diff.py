"""
Diff Data Models

정규화된 diff 관련 데이터 모델들
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


LINE_TYPES = {'context', 'addition', 'deletion'}
DIFF_FORMATS = {'git', 'unified', 'unknown'}


@dataclass(frozen=True)
class DiffLine:
    """Hunk 안의 개별 라인"""
    type: str  # 'context', 'addition', 'deletion'
    content: str
    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None

    def __post_init__(self):
        """데이터 검증"""
        if self.type not in LINE_TYPES:
            raise ValueError(f"Invalid line type: {self.type}")
        if (self.old_line_number is None) != (self.type == 'addition'):
            raise ValueError("old_line_number must be present unless the line is an addition")
        if (self.new_line_number is None) != (self.type == 'deletion'):
            raise ValueError("new_line_number must be present unless the line is a deletion")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'type': self.type, 'content': self.content}
        if self.old_line_number is not None:
            data['oldLineNumber'] = self.old_line_number
        if self.new_line_number is not None:
            data['newLineNumber'] = self.new_line_number
        return data


@dataclass(frozen=True)
class Hunk:
    """`@@ -a,b +c,d @@` 로 시작하는 변경 블록"""
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: List[DiffLine] = field(default_factory=list)
    header: str = ''

    def __post_init__(self):
        """데이터 검증"""
        if self.old_start < 0 or self.new_start < 0:
            raise ValueError("Line numbers must be non-negative")
        if self.old_lines < 0 or self.new_lines < 0:
            raise ValueError("Line counts must be non-negative")

    @property
    def added_lines(self) -> List[DiffLine]:
        return [line for line in self.lines if line.type == 'addition']

    @property
    def removed_lines(self) -> List[DiffLine]:
        return [line for line in self.lines if line.type == 'deletion']

    def to_dict(self) -> Dict[str, Any]:
        return {
            'header': self.header,
            'oldStart': self.old_start,
            'oldLines': self.old_lines,
            'newStart': self.new_start,
            'newLines': self.new_lines,
            'lines': [line.to_dict() for line in self.lines],
        }


@dataclass(frozen=True)
class DiffFile:
    """파일 단위 변경사항"""
    path: str
    old_path: Optional[str] = None
    created: bool = False
    deleted: bool = False
    renamed: bool = False
    binary: bool = False
    additions: int = 0
    deletions: int = 0
    hunks: List[Hunk] = field(default_factory=list)

    def __post_init__(self):
        """데이터 검증"""
        if self.additions < 0 or self.deletions < 0:
            raise ValueError("Addition and deletion counts must be non-negative")
        if self.binary and (self.hunks or self.additions or self.deletions):
            raise ValueError("Binary files cannot carry hunks or line counts")
        if self.renamed and not self.old_path:
            raise ValueError("Renamed files must record old_path")

    @property
    def change_type(self) -> str:
        """변경 유형 ('added', 'deleted', 'renamed', 'modified')"""
        if self.created:
            return 'added'
        if self.deleted:
            return 'deleted'
        if self.renamed:
            return 'renamed'
        return 'modified'

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'path': self.path}
        if self.old_path is not None:
            data['oldPath'] = self.old_path
        data.update({
            'created': self.created,
            'deleted': self.deleted,
            'renamed': self.renamed,
            'binary': self.binary,
            'additions': self.additions,
            'deletions': self.deletions,
            'hunks': [hunk.to_dict() for hunk in self.hunks],
        })
        return data


@dataclass(frozen=True)
class NormalizedDiff:
    """diff 정규화 결과 전체"""
    is_valid: bool
    format: str  # 'git', 'unified', 'unknown'
    strip_level: int = 0
    files: List[DiffFile] = field(default_factory=list)
    total_additions: int = 0
    total_deletions: int = 0
    total_files: int = 0
    errors: List[str] = field(default_factory=list)

    def __post_init__(self):
        """데이터 검증"""
        if self.format not in DIFF_FORMATS:
            raise ValueError(f"Invalid diff format: {self.format}")
        if self.strip_level < 0:
            raise ValueError("Strip level must be non-negative")

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]

    def get_file(self, path: str) -> Optional[DiffFile]:
        """경로로 파일 찾기"""
        for diff_file in self.files:
            if diff_file.path == path:
                return diff_file
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isValid': self.is_valid,
            'format': self.format,
            'stripLevel': self.strip_level,
            'files': [f.to_dict() for f in self.files],
            'totalAdditions': self.total_additions,
            'totalDeletions': self.total_deletions,
            'totalFiles': self.total_files,
            'errors': list(self.errors),
        }


# Pydantic models for API validation
class NormalizeDiffRequest(BaseModel):
    """API 요청용 diff 정규화 모델 (생략된 옵션은 DiffConfig 기본값 사용)"""
    model_config = ConfigDict(populate_by_name=True)

    diff: str
    strip_level: Optional[int] = Field(None, validation_alias=AliasChoices('stripLevel', 'strip', 'strip_level'))
    max_file_size: Optional[int] = Field(None, validation_alias=AliasChoices('maxFileSize', 'max_file_size'))
    allow_binary: Optional[bool] = Field(None, validation_alias=AliasChoices('allowBinary', 'allow_binary'))
    strict_validation: Optional[bool] = Field(None, validation_alias=AliasChoices('strictValidation', 'strict_validation'))

    @field_validator('diff')
    @classmethod
    def validate_diff(cls, v):
        if not v:
            raise ValueError('diff required')
        return v

    @field_validator('strip_level')
    @classmethod
    def validate_strip_level(cls, v):
        if v is not None and v < 0:
            raise ValueError('Strip level must be non-negative')
        return v

    @field_validator('max_file_size')
    @classmethod
    def validate_max_file_size(cls, v):
        if v is not None and v <= 0:
            raise ValueError('maxFileSize must be positive')
        return v
