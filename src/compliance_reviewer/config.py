"""
Configuration Management

시스템 설정 관리
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List
from pathlib import Path
import logging


@dataclass
class DiffConfig:
    """Diff 정규화 설정"""
    strip_level: int = 0
    max_diff_size: int = 10 * 1024 * 1024  # 10MB
    allow_binary: bool = True
    strict_validation: bool = False


@dataclass
class SecretsConfig:
    """시크릿 스캔 설정"""
    enable_entropy_analysis: bool = True
    min_entropy_threshold: float = 4.0
    max_file_size: int = 1024 * 1024  # 1MB
    whitelist_patterns: List[str] = field(default_factory=list)


@dataclass
class LicenseConfig:
    """라이선스 헤더 설정"""
    max_header_lines: int = 50
    default_license: str = "Apache-2.0"
    copyright_holder: str = "[COPYRIGHT_HOLDER]"
    required_licenses: List[str] = field(default_factory=list)
    allowed_licenses: List[str] = field(default_factory=list)
    prohibited_licenses: List[str] = field(default_factory=list)


@dataclass
class ComplianceConfig:
    """컴플라이언스 평가 설정"""
    require_tests: bool = True
    max_file_bytes: int = 500_000
    max_checklist_items: int = 400


@dataclass
class GuidanceConfig:
    """번들 가이드 팩 설정"""
    bundled_dir: Optional[str] = None  # None이면 패키지 내장 팩 사용


@dataclass
class GitHubConfig:
    """GitHub API 설정"""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30
    cache_ttl_seconds: int = 300


@dataclass
class ServerConfig:
    """HTTP 서버 설정"""
    host: str = "0.0.0.0"
    port: int = 8080
    max_content_length: int = 10 * 1024 * 1024  # 10MB


@dataclass
class LoggingConfig:
    """로깅 설정"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class AppConfig:
    """전체 애플리케이션 설정"""
    diff: DiffConfig = field(default_factory=DiffConfig)
    secrets: SecretsConfig = field(default_factory=SecretsConfig)
    license: LicenseConfig = field(default_factory=LicenseConfig)
    compliance: ComplianceConfig = field(default_factory=ComplianceConfig)
    guidance: GuidanceConfig = field(default_factory=GuidanceConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """환경 변수에서 설정 로드"""
        return cls(
            diff=DiffConfig(
                strip_level=int(os.getenv("DIFF_STRIP_LEVEL", "0")),
                max_diff_size=int(os.getenv("DIFF_MAX_SIZE", str(10 * 1024 * 1024))),
                allow_binary=_env_bool("DIFF_ALLOW_BINARY", "true"),
                strict_validation=_env_bool("DIFF_STRICT_VALIDATION", "false"),
            ),
            secrets=SecretsConfig(
                enable_entropy_analysis=_env_bool("SECRETS_ENTROPY_ANALYSIS", "true"),
                min_entropy_threshold=float(os.getenv("SECRETS_MIN_ENTROPY", "4.0")),
                max_file_size=int(os.getenv("SECRETS_MAX_FILE_SIZE", str(1024 * 1024))),
                whitelist_patterns=_env_list("SECRETS_WHITELIST"),
            ),
            license=LicenseConfig(
                max_header_lines=int(os.getenv("LICENSE_MAX_HEADER_LINES", "50")),
                default_license=os.getenv("LICENSE_DEFAULT", "Apache-2.0"),
                copyright_holder=os.getenv("LICENSE_COPYRIGHT_HOLDER", "[COPYRIGHT_HOLDER]"),
                required_licenses=_env_list("LICENSE_REQUIRED"),
                allowed_licenses=_env_list("LICENSE_ALLOWED"),
                prohibited_licenses=_env_list("LICENSE_PROHIBITED"),
            ),
            compliance=ComplianceConfig(
                require_tests=_env_bool("REQUIRE_TESTS", "true"),
                max_file_bytes=int(os.getenv("MAX_FILE_BYTES", "500000")),
                max_checklist_items=int(os.getenv("MAX_CHECKLIST_ITEMS", "400")),
            ),
            guidance=GuidanceConfig(
                bundled_dir=os.getenv("BUNDLED_GUIDANCE_DIR"),
            ),
            github=GitHubConfig(
                token=os.getenv("GITHUB_TOKEN"),
                api_base_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                timeout_seconds=int(os.getenv("GITHUB_TIMEOUT", "30")),
                cache_ttl_seconds=int(os.getenv("GITHUB_CACHE_TTL", "300")),
            ),
            server=ServerConfig(
                host=os.getenv("HOST", "0.0.0.0"),
                port=int(os.getenv("PORT", "8080")),
                max_content_length=int(os.getenv("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024))),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
            debug=_env_bool("DEBUG", "false"),
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """YAML 파일에서 설정 로드"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(
            diff=DiffConfig(**config_data.get('diff', {})),
            secrets=SecretsConfig(**config_data.get('secrets', {})),
            license=LicenseConfig(**config_data.get('license', {})),
            compliance=ComplianceConfig(**config_data.get('compliance', {})),
            guidance=GuidanceConfig(**config_data.get('guidance', {})),
            github=GitHubConfig(**config_data.get('github', {})),
            server=ServerConfig(**config_data.get('server', {})),
            logging=LoggingConfig(**config_data.get('logging', {})),
            debug=config_data.get('debug', False),
        )

    def validate(self) -> None:
        """설정 유효성 검사"""
        errors = []

        if self.diff.strip_level < 0:
            errors.append("Diff strip level must be non-negative")

        if self.diff.max_diff_size <= 0:
            errors.append("Maximum diff size must be positive")

        if self.secrets.min_entropy_threshold < 0:
            errors.append("Minimum entropy threshold must be non-negative")

        if self.license.max_header_lines <= 0:
            errors.append("License header line cap must be positive")

        if self.compliance.max_file_bytes <= 0:
            errors.append("Maximum file bytes must be positive")

        if not 0 < self.server.port < 65536:
            errors.append(f"Invalid server port: {self.server.port}")

        # 로그 레벨 검증
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """설정을 딕셔너리로 변환"""
        return {
            'diff': {
                'strip_level': self.diff.strip_level,
                'max_diff_size': self.diff.max_diff_size,
                'allow_binary': self.diff.allow_binary,
                'strict_validation': self.diff.strict_validation,
            },
            'secrets': {
                'enable_entropy_analysis': self.secrets.enable_entropy_analysis,
                'min_entropy_threshold': self.secrets.min_entropy_threshold,
                'max_file_size': self.secrets.max_file_size,
                'whitelist_patterns': list(self.secrets.whitelist_patterns),
            },
            'license': {
                'max_header_lines': self.license.max_header_lines,
                'default_license': self.license.default_license,
                'copyright_holder': self.license.copyright_holder,
                'required_licenses': list(self.license.required_licenses),
                'allowed_licenses': list(self.license.allowed_licenses),
                'prohibited_licenses': list(self.license.prohibited_licenses),
            },
            'compliance': {
                'require_tests': self.compliance.require_tests,
                'max_file_bytes': self.compliance.max_file_bytes,
                'max_checklist_items': self.compliance.max_checklist_items,
            },
            'guidance': {
                'bundled_dir': self.guidance.bundled_dir,
            },
            'github': {
                'api_base_url': self.github.api_base_url,
                'timeout_seconds': self.github.timeout_seconds,
                'cache_ttl_seconds': self.github.cache_ttl_seconds,
                # 보안상 토큰은 제외
            },
            'server': {
                'host': self.server.host,
                'port': self.server.port,
                'max_content_length': self.server.max_content_length,
            },
            'logging': {
                'level': self.logging.level,
                'format': self.logging.format,
                'file_path': self.logging.file_path,
                'max_file_size': self.logging.max_file_size,
                'backup_count': self.logging.backup_count,
            },
            'debug': self.debug,
        }


class ConfigManager:
    """설정 관리자"""

    def __init__(self, config: Optional[AppConfig] = None):
        self._config = config or AppConfig.from_env()
        self._config.validate()
        self._setup_logging()

    @property
    def config(self) -> AppConfig:
        """현재 설정 반환"""
        return self._config

    def update_config(self, **kwargs) -> None:
        """설정 업데이트"""
        config_dict = self._config.to_dict()
        token = self._config.github.token

        for key, value in kwargs.items():
            if '.' in key:
                # 중첩된 설정 (예: 'secrets.min_entropy_threshold')
                section, name = key.split('.', 1)
                if section in config_dict:
                    config_dict[section][name] = value
            else:
                config_dict[key] = value

        self._config = AppConfig(
            diff=DiffConfig(**config_dict['diff']),
            secrets=SecretsConfig(**config_dict['secrets']),
            license=LicenseConfig(**config_dict['license']),
            compliance=ComplianceConfig(**config_dict['compliance']),
            guidance=GuidanceConfig(**config_dict['guidance']),
            github=GitHubConfig(token=token, **config_dict['github']),
            server=ServerConfig(**config_dict['server']),
            logging=LoggingConfig(**config_dict['logging']),
            debug=config_dict['debug'],
        )

        self._config.validate()
        self._setup_logging()

    def _setup_logging(self) -> None:
        """로깅 설정"""
        logging.basicConfig(
            level=getattr(logging, self._config.logging.level.upper()),
            format=self._config.logging.format,
        )

        # 파일 로깅이 설정된 경우 로테이션 설정
        if self._config.logging.file_path:
            from logging.handlers import RotatingFileHandler

            handler = RotatingFileHandler(
                self._config.logging.file_path,
                maxBytes=self._config.logging.max_file_size,
                backupCount=self._config.logging.backup_count,
            )
            handler.setFormatter(logging.Formatter(self._config.logging.format))

            root_logger = logging.getLogger()
            root_logger.addHandler(handler)


_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """전역 설정 관리자 반환 (최초 호출 시 생성)"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_config() -> AppConfig:
    """현재 설정 반환"""
    return get_config_manager().config


def update_config(**kwargs) -> None:
    """설정 업데이트"""
    get_config_manager().update_config(**kwargs)
