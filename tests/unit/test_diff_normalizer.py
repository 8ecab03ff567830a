"""
Unit tests for the diff normalizer and changed-file helpers.
"""

import pytest

from compliance_reviewer.diff.normalizer import (
    DiffNormalizer,
    ParseState,
    apply_strip_level,
    extract_diff_files,
    normalize_diff,
    validate_diff,
)
from compliance_reviewer.diff.changes import (
    collect_added_hunks_by_file,
    collect_added_lines_by_file,
    is_code_file,
    is_test_file,
    parse_changed_files,
)


SIMPLE_UNIFIED = """--- a/test.js
+++ b/test.js
@@ -1,1 +1,2 @@
 line1
+line2
"""

NEW_FILE_GIT = """diff --git a/src/new.py b/src/new.py
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/src/new.py
@@ -0,0 +1,2 @@
+import os
+print(os.name)
"""

DELETED_FILE_GIT = """diff --git a/src/old.py b/src/old.py
deleted file mode 100644
index e69de29..0000000
--- a/src/old.py
+++ /dev/null
@@ -1,2 +0,0 @@
-import os
-print(os.name)
"""

RENAME_GIT = """diff --git a/old/name.py b/new/name.py
similarity index 100%
rename from old/name.py
rename to new/name.py
"""

BINARY_GIT = """diff --git a/img.png b/img.png
index 1234567..89abcde 100644
Binary files a/img.png and b/img.png differ
"""

MULTI_FILE_GIT = """diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -10,3 +10,4 @@ def main():
     setup()
-    run()
+    run(debug=True)
+    teardown()
     return 0
diff --git a/README.md b/README.md
index 3333333..4444444 100644
--- a/README.md
+++ b/README.md
@@ -1 +1 @@
-# Old title
+# New title
"""


class TestDiffNormalizer:
    """Unit tests for DiffNormalizer.normalize."""

    def test_simple_unified_diff(self):
        """A single-hunk unified diff yields one file with one addition."""
        result = normalize_diff(SIMPLE_UNIFIED)

        assert result.is_valid
        assert result.format == 'unified'
        assert len(result.files) == 1
        diff_file = result.files[0]
        assert diff_file.path == 'test.js'
        assert diff_file.additions == 1
        assert diff_file.deletions == 0
        assert diff_file.binary is False
        assert result.errors == []

    def test_hunk_line_numbers(self):
        """Context lines carry both numbers, additions only the new one."""
        hunk = normalize_diff(SIMPLE_UNIFIED).files[0].hunks[0]

        assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (1, 1, 1, 2)
        context, addition = hunk.lines
        assert context.type == 'context'
        assert (context.old_line_number, context.new_line_number) == (1, 1)
        assert addition.type == 'addition'
        assert addition.old_line_number is None
        assert addition.new_line_number == 2
        assert addition.content == 'line2'
        assert hunk.added_lines == [addition]
        assert hunk.removed_lines == []

    def test_new_file(self):
        """`new file mode` and a /dev/null old side mark the file as created."""
        result = normalize_diff(NEW_FILE_GIT)

        assert result.format == 'git'
        diff_file = result.files[0]
        assert diff_file.path == 'src/new.py'
        assert diff_file.created is True
        assert diff_file.deleted is False
        assert diff_file.additions == 2
        assert diff_file.change_type == 'added'

    def test_deleted_file(self):
        """`deleted file mode` marks the file as deleted and keeps its path."""
        diff_file = normalize_diff(DELETED_FILE_GIT).files[0]

        assert diff_file.path == 'src/old.py'
        assert diff_file.deleted is True
        assert diff_file.deletions == 2
        assert diff_file.additions == 0

    def test_rename(self):
        """Rename headers capture the old path."""
        diff_file = normalize_diff(RENAME_GIT).files[0]

        assert diff_file.renamed is True
        assert diff_file.path == 'new/name.py'
        assert diff_file.old_path == 'old/name.py'
        assert diff_file.hunks == []

    def test_binary_file_allowed(self):
        """Binary files are recorded without hunks."""
        result = normalize_diff(BINARY_GIT)

        assert result.is_valid
        diff_file = result.files[0]
        assert diff_file.binary is True
        assert diff_file.hunks == []
        assert result.errors == []

    def test_binary_file_disallowed(self):
        """Disallowed binaries add an error but stay in the result."""
        result = normalize_diff(BINARY_GIT, allow_binary=False)

        assert result.is_valid
        assert result.errors == ['Binary file not allowed: img.png']
        assert result.files[0].binary is True

    def test_strict_validation_invalidates_on_errors(self):
        """Strict validation turns any error into an invalid result."""
        result = normalize_diff(BINARY_GIT, allow_binary=False, strict_validation=True)

        assert result.is_valid is False

    def test_multiple_files_and_totals(self):
        """Totals equal the sum of per-file counts."""
        result = normalize_diff(MULTI_FILE_GIT)

        assert result.paths == ['src/app.py', 'README.md']
        app = result.get_file('src/app.py')
        assert (app.additions, app.deletions) == (2, 1)
        readme = result.get_file('README.md')
        assert (readme.additions, readme.deletions) == (1, 1)
        assert result.total_additions == 3
        assert result.total_deletions == 2
        assert result.total_files == 2

    def test_empty_diff(self):
        """Empty text is invalid with a fixed message."""
        result = normalize_diff('   \n')

        assert result.is_valid is False
        assert result.errors == ['Empty diff content']

    def test_unrecognized_format(self):
        """Text without file headers is rejected."""
        result = normalize_diff('hello world\nthis is not a diff\n')

        assert result.is_valid is False
        assert result.format == 'unknown'
        assert result.errors == ['Unsupported or unrecognized diff format']

    def test_size_limit(self):
        """Exceeding the byte ceiling aborts parsing."""
        result = normalize_diff(SIMPLE_UNIFIED, max_file_size=10)

        assert result.is_valid is False
        assert result.files == []
        assert result.errors[0].startswith('Diff size exceeds maximum limit')

    def test_crlf_matches_lf(self):
        """CRLF line endings parse the same as LF."""
        assert normalize_diff(SIMPLE_UNIFIED.replace('\n', '\r\n')) == normalize_diff(SIMPLE_UNIFIED)

    def test_missing_hunk_lengths_default_to_one(self):
        """`@@ -3 +3 @@` means one line on each side."""
        diff = "--- a/x.py\n+++ b/x.py\n@@ -3 +3 @@\n-a = 1\n+a = 2\n"
        hunk = normalize_diff(diff).files[0].hunks[0]

        assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (3, 1, 3, 1)

    def test_malformed_hunk_header_is_skipped(self):
        """Lines after a malformed header are ignored until a valid one."""
        diff = (
            "--- a/x.py\n+++ b/x.py\n"
            "@@ not a header @@\n+ignored\n"
            "@@ -1,1 +1,2 @@\n keep\n+counted\n"
        )
        result = normalize_diff(diff)

        assert result.is_valid
        diff_file = result.files[0]
        assert diff_file.additions == 1
        assert len(diff_file.hunks) == 1
        assert diff_file.hunks[0].added_lines[0].content == 'counted'

    def test_no_newline_marker_ignored(self):
        """`\\ No newline at end of file` is not counted as a line."""
        diff = "--- a/x.py\n+++ b/x.py\n@@ -1 +1 @@\n-a\n\\ No newline at end of file\n+b\n"
        diff_file = normalize_diff(diff).files[0]

        assert (diff_file.additions, diff_file.deletions) == (1, 1)
        assert len(diff_file.hunks[0].lines) == 2

    def test_marker_lookalikes_inside_hunk(self):
        """Body lines owed to the hunk header are never read as file markers."""
        diff = (
            "--- a/x.py\n+++ b/x.py\n"
            "@@ -1,2 +1,2 @@\n ctx\n--- old comment\n+++ new counter\n"
        )
        result = normalize_diff(diff)

        assert result.total_files == 1
        assert (result.total_additions, result.total_deletions) == (1, 1)
        deletion, addition = result.files[0].hunks[0].lines[1:]
        assert deletion.content == '-- old comment'
        assert addition.content == '++ new counter'

    def test_markers_after_exhausted_hunk_start_next_file(self):
        diff = (
            "--- a/x.py\n+++ b/x.py\n@@ -1 +1 @@\n-a\n+b\n"
            "--- a/y.py\n+++ b/y.py\n@@ -1 +1 @@\n-c\n+d\n"
        )
        assert normalize_diff(diff).paths == ['x.py', 'y.py']

    def test_blank_line_counts_as_context(self):
        """A context line stripped to nothing still advances both sides."""
        diff = "--- a/x.py\n+++ b/x.py\n@@ -1,3 +1,3 @@\n a\n\n-b\n+c\n"
        hunk = normalize_diff(diff).files[0].hunks[0]

        blank, deletion, addition = hunk.lines[1:]
        assert (blank.type, blank.content) == ('context', '')
        assert (blank.old_line_number, blank.new_line_number) == (2, 2)
        assert deletion.old_line_number == 3
        assert addition.new_line_number == 3

    def test_trailing_blank_line_not_counted(self):
        hunk = normalize_diff(SIMPLE_UNIFIED + "\n").files[0].hunks[0]
        assert len(hunk.lines) == 2

    def test_strip_level(self):
        """Strip level drops leading segments after the a/ b/ prefix."""
        diff = "--- a/src/lib/util.py\n+++ b/src/lib/util.py\n@@ -1 +1 @@\n-x\n+y\n"

        assert normalize_diff(diff, strip_level=1).files[0].path == 'lib/util.py'
        assert normalize_diff(diff, strip_level=5).files[0].path == 'src/lib/util.py'

    def test_idempotent(self):
        """Normalizing twice yields equal results."""
        normalizer = DiffNormalizer()
        assert normalizer.normalize(MULTI_FILE_GIT) == normalizer.normalize(MULTI_FILE_GIT)

    def test_misuse_raises(self):
        """Non-string input and negative strip levels are programming errors."""
        with pytest.raises(TypeError):
            normalize_diff(None)
        with pytest.raises(ValueError):
            normalize_diff(SIMPLE_UNIFIED, strip_level=-1)

    def test_to_dict_uses_camel_case(self):
        """Serialized results use camelCase keys."""
        data = normalize_diff(SIMPLE_UNIFIED).to_dict()

        assert data['isValid'] is True
        assert data['totalAdditions'] == 1
        assert data['files'][0]['hunks'][0]['lines'][1] == {
            'type': 'addition', 'content': 'line2', 'newLineNumber': 2
        }

    def test_parse_states(self):
        """The parser exposes its three states."""
        assert {s.name for s in ParseState} == {'SEEKING_FILE_HEADER', 'IN_HUNK_HEADER', 'IN_HUNK_BODY'}


class TestDiffHelpers:
    """Unit tests for module-level helpers."""

    def test_apply_strip_level(self):
        assert apply_strip_level('a/b/c.py', 0) == 'a/b/c.py'
        assert apply_strip_level('a/b/c.py', 1) == 'b/c.py'
        assert apply_strip_level('a/b/c.py', 2) == 'c.py'
        assert apply_strip_level('a/b/c.py', 3) == 'a/b/c.py'

    def test_extract_diff_files(self):
        assert extract_diff_files(MULTI_FILE_GIT) == ['src/app.py', 'README.md']
        assert extract_diff_files(MULTI_FILE_GIT, strip_level=1) == ['app.py', 'README.md']

    def test_validate_diff(self):
        assert validate_diff(SIMPLE_UNIFIED) == (True, [])
        assert validate_diff('') == (False, ['Empty diff content'])


class TestChangedFiles:
    """Unit tests for light changed-file extraction."""

    def test_parse_changed_files(self):
        """Paths come from +++ markers and both sides of git headers, in order."""
        assert parse_changed_files(RENAME_GIT) == ['old/name.py', 'new/name.py']
        assert parse_changed_files(MULTI_FILE_GIT) == ['src/app.py', 'README.md']

    def test_code_and_test_classification(self):
        assert is_code_file('src/app.js')
        assert is_code_file('main.go')
        assert not is_code_file('README.md')
        assert is_test_file('src/app.test.js')
        assert is_test_file('pkg/handler_test.go')
        assert not is_test_file('src/app.js')

    def test_added_lines_by_file(self):
        """Added lines carry post-image numbers from the latest hunk header."""
        index = collect_added_lines_by_file(MULTI_FILE_GIT)

        assert [(a.line, a.text) for a in index['src/app.py']] == [
            (11, '    run(debug=True)'),
            (12, '    teardown()'),
        ]
        assert [(a.line, a.text) for a in index['README.md']] == [(1, '# New title')]

    def test_added_hunks_by_file(self):
        """Each hunk's added lines are joined per file."""
        diff = (
            "--- a/x.py\n+++ b/x.py\n"
            "@@ -1,0 +1,2 @@\n+# header\n+import os\n"
            "@@ -9,0 +11,1 @@\n+print(1)\n"
        )
        assert collect_added_hunks_by_file(diff) == {'x.py': ['# header\nimport os', 'print(1)']}
