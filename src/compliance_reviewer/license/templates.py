"""
License Templates

Known license templates and per-extension comment styles.
"""

import os
from typing import List, Optional, Tuple

from ..exceptions import UnknownLicenseError
from ..models.license import CommentStyle, LicenseTemplate


APACHE_2_0 = LicenseTemplate(
    name='Apache License 2.0',
    spdx_id='Apache-2.0',
    template="""Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.""",
    compatibility=['MIT', 'BSD-3-Clause', 'BSD-2-Clause'],
    copyleft_level='none',
)

MIT = LicenseTemplate(
    name='MIT License',
    spdx_id='MIT',
    template="""Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.""",
    compatibility=['Apache-2.0', 'BSD-3-Clause', 'BSD-2-Clause', 'GPL-2.0', 'GPL-3.0'],
    copyleft_level='none',
)

GPL_3_0 = LicenseTemplate(
    name='GNU General Public License v3.0',
    spdx_id='GPL-3.0',
    template="""This program is free software: you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU General Public License for more details.

You should have received a copy of the GNU General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.""",
    compatibility=['GPL-2.0'],
    copyleft_level='strong',
)

_BSD_DISCLAIMER = """THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE."""

_BSD_CLAUSES = """Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice,
   this list of conditions and the following disclaimer.

2. Redistributions in binary form must reproduce the above copyright notice,
   this list of conditions and the following disclaimer in the documentation
   and/or other materials provided with the distribution."""

BSD_3_CLAUSE = LicenseTemplate(
    name='BSD 3-Clause License',
    spdx_id='BSD-3-Clause',
    template=_BSD_CLAUSES + """

3. Neither the name of the copyright holder nor the names of its
   contributors may be used to endorse or promote products derived from
   this software without specific prior written permission.

""" + _BSD_DISCLAIMER,
    compatibility=['MIT', 'Apache-2.0', 'BSD-2-Clause'],
    copyleft_level='none',
)

BSD_2_CLAUSE = LicenseTemplate(
    name='BSD 2-Clause License',
    spdx_id='BSD-2-Clause',
    template=_BSD_CLAUSES + '\n\n' + _BSD_DISCLAIMER,
    compatibility=['MIT', 'Apache-2.0', 'BSD-3-Clause'],
    copyleft_level='none',
)

DEFAULT_LICENSE_TEMPLATES: Tuple[LicenseTemplate, ...] = (
    APACHE_2_0,
    MIT,
    GPL_3_0,
    BSD_3_CLAUSE,
    BSD_2_CLAUSE,
)

LANGUAGE_COMMENT_STYLES: Tuple[CommentStyle, ...] = (
    CommentStyle(
        prefix=' * ',
        block_start='/*',
        block_end='*/',
        extensions=('.js', '.ts', '.jsx', '.tsx', '.java', '.c', '.cpp', '.h', '.hpp',
                    '.cs', '.php', '.scala', '.kt', '.swift'),
    ),
    CommentStyle(prefix='# ', extensions=('.py', '.rb', '.sh', '.pl', '.yaml', '.yml', '.toml', '.r')),
    CommentStyle(prefix='-- ', extensions=('.sql', '.hs', '.elm')),
    CommentStyle(prefix='   ', block_start='<!--', block_end='-->', extensions=('.html', '.xml', '.svg')),
    CommentStyle(prefix='% ', extensions=('.m', '.tex')),
    CommentStyle(prefix='// ', extensions=('.go', '.rs', '.dart')),
)


def get_default_license_templates() -> List[LicenseTemplate]:
    return list(DEFAULT_LICENSE_TEMPLATES)


def get_supported_languages() -> List[CommentStyle]:
    return list(LANGUAGE_COMMENT_STYLES)


def find_template(spdx_id: str) -> Optional[LicenseTemplate]:
    """Look up a template by SPDX id (exact match)."""
    for template in DEFAULT_LICENSE_TEMPLATES:
        if template.spdx_id == spdx_id:
            return template
    return None


def get_template(spdx_id: str) -> LicenseTemplate:
    """
    Look up a template by SPDX id.

    Raises:
        UnknownLicenseError: if no template has that id
    """
    template = find_template(spdx_id)
    if template is None:
        raise UnknownLicenseError(spdx_id)
    return template


def get_comment_style(file_path: str) -> Optional[CommentStyle]:
    """Comment style registered for the file's extension, or None."""
    ext = os.path.splitext(file_path)[1].lower()
    if not ext:
        return None
    for style in LANGUAGE_COMMENT_STYLES:
        if ext in style.extensions:
            return style
    return None
