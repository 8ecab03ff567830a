"""
Exceptions

Errors raised for misuse of the compliance engine. Malformed input data
(diffs, guidance text, file content) never raises; it is reported through
result objects instead.
"""

from typing import List, Optional


class ComplianceReviewerError(Exception):
    """Base class for compliance reviewer errors."""


class UnsupportedFileTypeError(ComplianceReviewerError, ValueError):
    """No comment style is registered for the file's extension."""

    def __init__(self, file_path: str):
        super().__init__(f"Unsupported file type: {file_path}")
        self.file_path = file_path


class UnknownLicenseError(ComplianceReviewerError, KeyError):
    """Requested SPDX identifier is not a known license template."""

    def __init__(self, spdx_id: str):
        super().__init__(spdx_id)
        self.spdx_id = spdx_id

    def __str__(self) -> str:
        return f"Unknown license: {self.spdx_id}"


class RequestValidationError(ComplianceReviewerError):
    """Request payload failed validation at the API boundary."""

    def __init__(self, message: str, code: str = "INVALID_REQUEST_FORMAT",
                 details: Optional[List[dict]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or []


class BundledPackNotFoundError(ComplianceReviewerError, KeyError):
    """No bundled guidance pack is registered under the requested id."""

    def __init__(self, pack_id: str):
        super().__init__(pack_id)
        self.pack_id = pack_id

    def __str__(self) -> str:
        return f"Bundled pack not found: {self.pack_id}"
