"""
Unit tests for license header detection, validation and generation.
"""

import pytest

from compliance_reviewer.exceptions import UnknownLicenseError, UnsupportedFileTypeError
from compliance_reviewer.license.detector import (
    calculate_similarity,
    check_license_compatibility,
    detect_license,
    extract_license_header,
    generate_license_header,
    normalize_license_text,
    validate_license_header,
    validate_license_headers,
)
from compliance_reviewer.license.templates import (
    BSD_2_CLAUSE,
    BSD_3_CLAUSE,
    MIT,
    find_template,
    get_comment_style,
    get_template,
)
from compliance_reviewer.models.license import LicenseValidationOptions


APACHE_JS = """/*
 * Copyright (c) 2025 X
 * Licensed under the Apache License, Version 2.0 (the "License");
 * you may not use this file except in compliance with the License.
 *     http://www.apache.org/licenses/LICENSE-2.0
 */

export const answer = 42;
"""

GPL_PY = """# Copyright (c) 2025 Acme
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

import os
"""


class TestHeaderExtraction:
    """Tests for locating the leading license comment."""

    def test_extract_stops_at_code(self):
        header = extract_license_header(APACHE_JS)

        assert header.startswith('* Copyright (c) 2025 X')
        assert header.endswith('export const answer = 42;')

    def test_no_header(self):
        assert extract_license_header('const a = 1;\nconst b = 2;\n') == ''

    def test_max_lines(self):
        content = '\n' * 10 + '# Copyright 2025 Acme\n'
        assert extract_license_header(content, max_lines=5) == ''

    def test_normalize(self):
        assert normalize_license_text('  Hello,\n  World!  (c) ') == 'hello world c'


class TestDetectLicense:
    """Tests for template classification."""

    def test_apache_single_line_header(self):
        """A one-line Apache notice is recognised through its distinctive phrases."""
        header = ('/* Copyright (c) 2025 X * Licensed under the Apache License, Version 2.0 '
                  '... http://www.apache.org/licenses/LICENSE-2.0 */')
        result = detect_license(header, current_year=2025)

        assert result.detected is True
        assert result.spdx_id == 'Apache-2.0'
        assert result.confidence >= 0.8

    def test_exact_template(self):
        result = detect_license(MIT.template, require_copyright=False)

        assert result.spdx_id == 'MIT'
        assert result.confidence == 1.0
        assert result.issues == []

    def test_bsd_variants_disambiguated(self):
        """Both BSD templates hit the phrase shortcut; the closer body wins."""
        two = detect_license('Copyright (c) 2025 Acme\n' + BSD_2_CLAUSE.template, current_year=2025)
        three = detect_license('Copyright (c) 2025 Acme\n' + BSD_3_CLAUSE.template, current_year=2025)

        assert two.spdx_id == 'BSD-2-Clause'
        assert three.spdx_id == 'BSD-3-Clause'

    def test_short_form(self):
        result = detect_license('Copyright 2025 Acme. Licensed under the MIT license.', current_year=2025)

        assert result.spdx_id == 'MIT'
        assert result.confidence == pytest.approx(0.8)

    def test_unidentified_header(self):
        result = detect_license('Copyright (c) 2025 Acme. All rights reserved.', current_year=2025)

        assert result.detected is False
        assert result.confidence < 0.7
        assert [issue.type for issue in result.issues] == ['invalid']
        assert result.issues[0].severity == 'error'

    def test_empty_header(self):
        result = detect_license('')

        assert result.detected is False
        assert result.confidence == 0.0
        assert result.issues[0].message == 'No license header found'

    def test_copyright_issues(self):
        missing = detect_license(MIT.template, current_year=2025)
        stale = detect_license('Copyright (c) 2019-2021 Acme\n' + MIT.template, current_year=2025)

        assert [i.type for i in missing.issues] == ['missing']
        assert missing.issues[0].severity == 'warning'
        assert [i.type for i in stale.issues] == ['outdated']
        assert 'found 2021, current 2025' in stale.issues[0].message

    def test_similarity_bounds(self):
        assert calculate_similarity('same text', 'Same, text!') == 1.0
        assert calculate_similarity('alpha', 'beta') == 0.0


class TestValidateLicenseHeader:
    """Tests for policy validation of a single file."""

    def test_valid_apache_file(self):
        result = validate_license_header(APACHE_JS, 'src/answer.js', LicenseValidationOptions(current_year=2025))

        assert result.is_valid
        assert result.detection.spdx_id == 'Apache-2.0'
        assert result.detection.location.start_line == 2
        assert result.suggestions == []
        assert result.header_format_valid

    def test_missing_header_suggests_default(self):
        result = validate_license_header('const a = 1;\n', 'src/a.js')

        assert not result.is_valid
        assert result.issues[0].message == 'No license header found'
        assert len(result.suggestions) == 1
        suggestion = result.suggestions[0]
        assert suggestion.type == 'add'
        assert suggestion.spdx_id == 'Apache-2.0'
        assert suggestion.suggested_header.startswith('/*\n * Copyright (c)')

    def test_suggestion_uses_required_license(self):
        options = LicenseValidationOptions(required_licenses=['MIT'], current_year=2025)
        result = validate_license_header('x = 1\n', 'tool.py', options)

        assert result.suggestions[0].spdx_id == 'MIT'
        assert result.meets_requirements is False

    def test_prohibited_license(self):
        options = LicenseValidationOptions(prohibited_licenses=['GPL-3.0'], current_year=2025)
        result = validate_license_header(GPL_PY, 'tool.py', options)

        assert result.detection.spdx_id == 'GPL-3.0'
        assert not result.is_valid
        assert result.license_compatibility is False
        assert any(i.message == 'License GPL-3.0 is prohibited' for i in result.issues)

    def test_allowed_and_required_lists(self):
        options = LicenseValidationOptions(
            required_licenses=['Apache-2.0'], allowed_licenses=['Apache-2.0', 'MIT'], current_year=2025
        )
        result = validate_license_header(GPL_PY, 'tool.py', options)

        messages = [i.message for i in result.issues]
        assert 'License GPL-3.0 is not in required licenses: Apache-2.0' in messages
        assert 'License GPL-3.0 is not in allowed licenses: Apache-2.0, MIT' in messages
        assert result.error_count == 2

    def test_report(self):
        mit_py = '# Copyright (c) 2025 Acme\n# Licensed under the MIT license.\n\nimport os\n'
        report = validate_license_headers(
            [('a.js', APACHE_JS), ('b.py', mit_py), ('c.py', 'x = 1\n')],
            LicenseValidationOptions(current_year=2025),
        )

        assert report.total_files == 3
        assert report.valid_files == 2
        assert report.invalid_files == 1
        assert report.missing_headers == 1
        assert report.license_breakdown == {'Apache-2.0': 1, 'MIT': 1}
        assert report.to_dict()['summary']['missingHeaders'] == 1


class TestGenerateLicenseHeader:
    """Tests for header rendering."""

    def test_block_comment(self):
        header = generate_license_header('src/app.ts', 'MIT', 'Acme', 2024)
        lines = header.split('\n')

        assert lines[0] == '/*'
        assert lines[1] == ' * Copyright (c) 2024 Acme'
        assert lines[-2] == '*/'
        assert header.endswith('\n')

    def test_line_comment(self):
        header = generate_license_header('main.go', get_template('Apache-2.0'), 'Acme', 2024)

        assert header.startswith('// Copyright (c) 2024 Acme\n// \n// Licensed under the Apache License')

    def test_generated_header_is_detected(self):
        header = generate_license_header('tool.py', 'BSD-3-Clause', 'Acme', 2025)
        result = validate_license_header(header + '\nimport os\n', 'tool.py', LicenseValidationOptions(current_year=2025))

        assert result.detection.spdx_id == 'BSD-3-Clause'
        assert result.is_valid

    def test_unsupported_file_type(self):
        with pytest.raises(UnsupportedFileTypeError):
            generate_license_header('Makefile', 'MIT', 'Acme')

    def test_unknown_license(self):
        with pytest.raises(UnknownLicenseError):
            generate_license_header('x.py', 'WTFPL', 'Acme')


class TestTemplatesAndCompatibility:
    """Tests for template lookup and compatibility."""

    def test_lookup(self):
        assert find_template('MIT') is MIT
        assert find_template('mit') is None
        assert get_comment_style('a.PY').prefix == '# '
        assert get_comment_style('README') is None

    def test_permissive_pair_compatible(self):
        result = check_license_compatibility('MIT', 'Apache-2.0')

        assert result.compatible
        assert result.issues == []
        assert result.warnings == []

    def test_copyleft_against_permissive(self):
        result = check_license_compatibility('GPL-3.0', 'MIT')

        assert not result.compatible
        assert result.issues == ['GPL-3.0 (copyleft) may not be compatible with MIT (permissive)']

    def test_unknown_license(self):
        result = check_license_compatibility('Foo-1.0', 'MIT')

        assert not result.compatible
        assert result.issues == ['Unknown license(s) cannot be checked for compatibility']
