"""
Main Compliance Reviewer API

Main interface that wires configuration, the compliance evaluator and the
optional GitHub client behind the operations exposed by the HTTP server.
"""

import re
import logging
from typing import Any, Dict, Optional
from datetime import datetime

from .config import AppConfig, get_config
from .diff.changes import parse_changed_files
from .diff.normalizer import DiffNormalizer
from .github.client import GitHubAPIError, GitHubClient, ResponseCache
from .guidance.bundled import BundledPackLoader
from .guidance.summarizer import RuleSummarizer, infer_quality_gates
from .license.detector import check_license_compatibility, generate_license_header, validate_license_headers
from .models.compliance import (
    ComplianceRequest,
    FileContentsRequest,
    QualityGatesRequest,
    RepositoryRequest,
    SummarizeRulesRequest,
)
from .models.diff import NormalizeDiffRequest
from .models.guidance import SelectInstructionPackRequest
from .models.license import LicenseCompatibilityRequest, LicenseGenerateRequest, LicenseValidateRequest
from .models.secret import SecretPatternRequest, SecretScanRequest
from .review.evaluator import ComplianceEvaluator
from .secrets.patterns import validate_secret_pattern
from .secrets.scanner import SecretScanner


logger = logging.getLogger(__name__)


def _or_default(value, default):
    return default if value is None else value


class ComplianceReviewerAPI:
    """
    Main Compliance Reviewer API interface.

    Every operation takes a validated request model and returns a
    JSON-ready dict. When a compliance request names a repository and
    carries no checklist, guidance is loaded from GitHub and summarized
    into one, and post-change file contents are fetched at the ref.
    """

    def __init__(self, config: Optional[AppConfig] = None, github_client: Optional[GitHubClient] = None):
        """
        Initialize Compliance Reviewer API.

        Args:
            config: Optional configuration object (global config when None)
            github_client: Optional preconfigured GitHub client
        """
        self.config = config or get_config()

        logger.info("Initializing Compliance Reviewer API components...")

        self.normalizer = DiffNormalizer()
        self.summarizer = RuleSummarizer()
        self.evaluator = ComplianceEvaluator(
            compliance_config=self.config.compliance,
            secrets_config=self.config.secrets,
            license_config=self.config.license,
        )
        self.bundled_packs = BundledPackLoader(self.config.guidance.bundled_dir)
        self._github_client = github_client

        logger.info("Compliance Reviewer API initialized successfully")

    @property
    def github_client(self) -> GitHubClient:
        """GitHub client, created from configuration on first use."""
        if self._github_client is None:
            if not self.config.github.token:
                raise GitHubAPIError("GitHub token is not configured", status_code=401)
            self._github_client = GitHubClient(
                token=self.config.github.token,
                base_url=self.config.github.api_base_url,
                timeout=self.config.github.timeout_seconds,
                cache=ResponseCache(ttl_seconds=self.config.github.cache_ttl_seconds),
            )
        return self._github_client

    def normalize_diff(self, request: NormalizeDiffRequest) -> Dict[str, Any]:
        """Parse a diff into files, hunks and lines."""
        defaults = self.config.diff
        result = self.normalizer.normalize(
            request.diff,
            strip_level=_or_default(request.strip_level, defaults.strip_level),
            max_file_size=request.max_file_size or defaults.max_diff_size,
            allow_binary=_or_default(request.allow_binary, defaults.allow_binary),
            strict_validation=_or_default(request.strict_validation, defaults.strict_validation),
        )
        return result.to_dict()

    def assert_compliance(self, request: ComplianceRequest) -> Dict[str, Any]:
        """
        Run the compliance evaluation.

        Args:
            request: Validated compliance request

        Returns:
            ComplianceResult dict plus usedChecklistCount and guidanceInferred
        """
        start_time = datetime.now()
        checklist = [rule.to_rule() for rule in request.checklist or []]
        guidance_text = request.guidance_text
        file_contents = request.file_contents
        loaded_guidance = ''

        if request.has_repository:
            if not checklist:
                rules = self.github_client.load_rules(request.owner, request.repo, request.ref)
                loaded_guidance = rules.get('combinedMarkdown', '')
                checklist = self.summarizer.summarize(
                    loaded_guidance, self.config.compliance.max_checklist_items
                )
                if not guidance_text:
                    guidance_text = loaded_guidance
            if file_contents is None:
                paths = parse_changed_files(request.diff)
                file_contents = self.github_client.get_file_contents(
                    request.owner, request.repo, request.ref, paths
                )

        result = self.evaluator.evaluate(
            request.diff,
            checklist=checklist,
            require_tests=request.require_tests,
            max_file_bytes=request.max_file_bytes,
            guidance_text=guidance_text,
            pr_labels=request.pr_labels,
            pr_title=request.pr_title,
            file_contents=file_contents,
        )

        processing_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"Compliance evaluation completed ({processing_time:.2f}s)")

        response = result.to_dict()
        response['usedChecklistCount'] = len(checklist)
        response['guidanceInferred'] = bool(loaded_guidance and checklist)
        return response

    def summarize_rules(self, request: SummarizeRulesRequest) -> Dict[str, Any]:
        rules = self.summarizer.summarize(request.markdown, request.max_items)
        return {'checklist': [rule.to_dict() for rule in rules]}

    def infer_quality_gates(self, request: QualityGatesRequest) -> Dict[str, Any]:
        return {'recommendedCommands': infer_quality_gates(request.paths)}

    def scan_secrets(self, request: SecretScanRequest) -> Dict[str, Any]:
        """Scan a diff's added lines, or a set of files, for secrets."""
        options = request.options.to_options()
        # configured whitelist applies on top of the request's own patterns
        options.whitelist_patterns.extend(re.compile(p) for p in self.config.secrets.whitelist_patterns)
        scanner = SecretScanner(options)
        if request.diff:
            result = scanner.scan_diff(request.diff)
        else:
            result = scanner.scan_files([(f.path, f.content) for f in request.files])
        return result.to_dict()

    def validate_secret_pattern(self, request: SecretPatternRequest) -> Dict[str, Any]:
        is_valid, errors = validate_secret_pattern(request.model_dump())
        return {'isValid': is_valid, 'errors': errors}

    def validate_licenses(self, request: LicenseValidateRequest) -> Dict[str, Any]:
        options = request.options.to_options()
        options.copyright_holder = self.config.license.copyright_holder
        options.default_license = self.config.license.default_license
        report = validate_license_headers([(f.path, f.content) for f in request.files], options)
        return report.to_dict()

    def generate_license_header(self, request: LicenseGenerateRequest) -> Dict[str, Any]:
        """
        Render a license header for a file.

        Raises:
            UnsupportedFileTypeError: no comment style for the extension
            UnknownLicenseError: unknown SPDX id
        """
        header = generate_license_header(
            request.file_path, request.license, request.copyright_holder, request.year
        )
        return {'header': header, 'license': request.license, 'filePath': request.file_path}

    def check_license_compatibility(self, request: LicenseCompatibilityRequest) -> Dict[str, Any]:
        return check_license_compatibility(request.license1, request.license2).to_dict()

    def load_rules(self, request: RepositoryRequest) -> Dict[str, Any]:
        """Load repository guidance documents from GitHub."""
        return self.github_client.load_rules(request.owner, request.repo, request.ref)

    def get_file_contents(self, request: FileContentsRequest) -> Dict[str, Any]:
        contents = self.github_client.get_file_contents(request.owner, request.repo, request.ref, request.paths)
        return {'contents': contents, 'count': len(contents)}

    def bundled_guidance(self, pack_id: Optional[str] = None) -> Dict[str, Any]:
        """One bundled pack with its documents, or the list of packs when no id is given."""
        if pack_id:
            return self.bundled_packs.get_pack(pack_id).to_dict()
        return {'packs': [info.to_dict() for info in self.bundled_packs.list_packs()]}

    def select_instruction_pack(self, request: SelectInstructionPackRequest) -> Dict[str, Any]:
        """
        Combine a bundled pack with repository guidance.

        Without a repository the pack markdown is returned as is. With one,
        `org` keeps the pack, `repo` keeps the repository guidance and
        `merged` joins both.

        Raises:
            BundledPackNotFoundError: unknown pack id
        """
        pack = self.bundled_packs.get_pack(request.pack_id)
        combined = pack.combined_markdown
        files = []

        if request.has_repository:
            rules = self.github_client.load_rules(request.owner, request.repo, request.ref)
            repo_markdown = rules.get('combinedMarkdown', '')
            files = rules.get('files', [])
            if request.mode == 'repo':
                combined = repo_markdown
            elif request.mode == 'merged':
                combined = '\n\n'.join(part for part in (pack.combined_markdown, repo_markdown) if part)

        logger.info(f"Selected bundled pack {pack.id} ({request.mode}, {len(files)} repository files)")
        return {
            'pack': {'id': pack.id, 'title': pack.title},
            'mode': request.mode,
            'files': files,
            'combinedMarkdown': combined,
        }

    def get_system_health(self) -> Dict:
        """
        Get system health status.

        Returns:
            Health status of components
        """
        health = {
            'status': 'healthy',
            'timestamp': datetime.now().isoformat(),
            'components': {
                'evaluator': 'healthy',
                'github': 'configured' if (self._github_client or self.config.github.token) else 'not_configured',
            },
        }
        return health
