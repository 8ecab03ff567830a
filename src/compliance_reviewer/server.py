"""
Compliance Reviewer HTTP Server

Flask application factory exposing the compliance operations as JSON
endpoints.
"""

import logging
from functools import wraps
from typing import Callable, Optional, Type

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import BaseModel, ValidationError

from . import __version__
from .api import ComplianceReviewerAPI
from .config import AppConfig, get_config
from .exceptions import (
    BundledPackNotFoundError,
    RequestValidationError,
    UnknownLicenseError,
    UnsupportedFileTypeError,
)
from .github.client import RateLimitExceeded
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


logger = logging.getLogger(__name__)


def error_response(code: str, message: str, status: int, details=None):
    """JSON error body in the shared `{"error": {code, message}}` shape."""
    body = {'error': {'code': code, 'message': message}}
    if details:
        body['error']['details'] = details
    return jsonify(body), status


def parse_request(model: Type[BaseModel]) -> BaseModel:
    """
    Validate the JSON body against a request model.

    Raises:
        RequestValidationError: body is missing, not JSON, or invalid
    """
    payload = request.get_json(silent=True)
    if payload is None:
        raise RequestValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False)
        message = '; '.join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}" for err in errors
        )
        raise RequestValidationError(message, details=errors)


def endpoint(error_code: str) -> Callable:
    """Map handler exceptions to JSON errors; `error_code` is used for unexpected failures."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except RequestValidationError as e:
                return error_response(e.code, str(e), 400, e.details)
            except UnsupportedFileTypeError as e:
                return error_response('UNSUPPORTED_FILE_TYPE', str(e), 400)
            except UnknownLicenseError as e:
                return error_response('UNKNOWN_LICENSE', str(e), 400)
            except BundledPackNotFoundError as e:
                return error_response('BUNDLED_PACK_NOT_FOUND', str(e), 404)
            except RateLimitExceeded as e:
                return error_response('RATE_LIMIT_EXCEEDED', str(e), 429)
            except Exception as e:
                logger.error(f"{request.path} failed: {e}", exc_info=True)
                return error_response(error_code, str(e) or error_code.lower(), 500)
        return wrapper
    return decorator


def create_app(api: Optional[ComplianceReviewerAPI] = None, config: Optional[AppConfig] = None) -> Flask:
    """
    Create the Flask application.

    Args:
        api: Preconfigured API facade (built from config when None)
        config: Application configuration (global config when None)
    """
    config = config or (api.config if api else get_config())
    api = api or ComplianceReviewerAPI(config)

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.server.max_content_length
    CORS(app)  # Enable CORS for editor and browser clients

    @app.route('/healthz', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'ok': True,
            'service': 'compliance-reviewer',
            'version': __version__,
            'components': api.get_system_health()['components'],
        })

    @app.route('/normalize-diff', methods=['POST'])
    @endpoint('NORMALIZE_DIFF_FAILED')
    def normalize_diff():
        return jsonify(api.normalize_diff(parse_request(NormalizeDiffRequest)))

    @app.route('/assert-compliance', methods=['POST'])
    @endpoint('ASSERT_COMPLIANCE_FAILED')
    def assert_compliance():
        return jsonify(api.assert_compliance(parse_request(ComplianceRequest)))

    @app.route('/summarize-rules', methods=['POST'])
    @endpoint('SUMMARIZE_RULES_FAILED')
    def summarize_rules():
        return jsonify(api.summarize_rules(parse_request(SummarizeRulesRequest)))

    @app.route('/infer-quality-gates', methods=['POST'])
    @endpoint('INFER_QUALITY_GATES_FAILED')
    def infer_quality_gates():
        return jsonify(api.infer_quality_gates(parse_request(QualityGatesRequest)))

    @app.route('/secrets/scan', methods=['POST'])
    @endpoint('SECRET_SCAN_FAILED')
    def scan_secrets():
        return jsonify(api.scan_secrets(parse_request(SecretScanRequest)))

    @app.route('/secrets/validate-pattern', methods=['POST'])
    @endpoint('PATTERN_VALIDATION_FAILED')
    def validate_pattern():
        return jsonify(api.validate_secret_pattern(parse_request(SecretPatternRequest)))

    @app.route('/license/validate', methods=['POST'])
    @endpoint('LICENSE_VALIDATION_FAILED')
    def validate_licenses():
        return jsonify(api.validate_licenses(parse_request(LicenseValidateRequest)))

    @app.route('/license/generate', methods=['POST'])
    @endpoint('LICENSE_GENERATION_FAILED')
    def generate_license():
        return jsonify(api.generate_license_header(parse_request(LicenseGenerateRequest)))

    @app.route('/license/compatibility', methods=['POST'])
    @endpoint('LICENSE_COMPATIBILITY_FAILED')
    def license_compatibility():
        return jsonify(api.check_license_compatibility(parse_request(LicenseCompatibilityRequest)))

    @app.route('/load-rules', methods=['POST'])
    @endpoint('LOAD_RULES_FAILED')
    def load_rules():
        return jsonify(api.load_rules(parse_request(RepositoryRequest)))

    @app.route('/file-contents', methods=['POST'])
    @endpoint('FILE_CONTENTS_FAILED')
    def file_contents():
        return jsonify(api.get_file_contents(parse_request(FileContentsRequest)))

    @app.route('/bundled-guidance', methods=['GET'])
    @endpoint('BUNDLED_GUIDANCE_FAILED')
    def bundled_guidance():
        return jsonify(api.bundled_guidance(request.args.get('packId')))

    @app.route('/select-instruction-pack', methods=['POST'])
    @endpoint('SELECT_INSTRUCTION_PACK_FAILED')
    def select_instruction_pack():
        return jsonify(api.select_instruction_pack(parse_request(SelectInstructionPackRequest)))

    logger.info(f"Created app with {len(list(app.url_map.iter_rules()))} routes")
    return app
