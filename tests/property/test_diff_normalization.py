"""
Property-based tests for diff normalization.

Line accounting, strip levels and repeat parsing.
"""

from hypothesis import given, strategies as st

from compliance_reviewer.diff.normalizer import apply_strip_level, extract_diff_files, normalize_diff


segment = st.text(alphabet='abcdefghijklmnopqrstuvwxyz', min_size=1, max_size=8)
line_text = st.text(alphabet='abcdefghijklmnopqrstuvwxyz0123456789 =;', max_size=30)


@st.composite
def file_changes(draw):
    """Unique paths, each with some deleted and added lines."""
    paths = draw(st.lists(
        st.lists(segment, min_size=1, max_size=4).map('/'.join),
        min_size=1, max_size=5, unique=True,
    ))
    changes = []
    for path in paths:
        deleted = draw(st.lists(line_text, max_size=6))
        added = draw(st.lists(line_text, min_size=0 if deleted else 1, max_size=6))
        changes.append((path, deleted, added))
    return changes


def build_git_diff(changes):
    chunks = []
    for path, deleted, added in changes:
        old_start = 1 if deleted else 0
        new_start = 1 if added else 0
        chunks.append(f'diff --git a/{path} b/{path}\n--- a/{path}\n+++ b/{path}\n')
        chunks.append(f'@@ -{old_start},{len(deleted)} +{new_start},{len(added)} @@\n')
        chunks.extend(f'-{line}\n' for line in deleted)
        chunks.extend(f'+{line}\n' for line in added)
    return ''.join(chunks)


class TestDiffNormalizationProperties:
    """Property tests for the diff normalizer."""

    @given(changes=file_changes())
    def test_line_accounting(self, changes):
        """
        Property: totals are the sums of per-file counts.

        Given: A git diff with known added and deleted lines per file
        When: The diff is normalized
        Then: Per-file counts match the input and totals are their sums
        """
        result = normalize_diff(build_git_diff(changes))

        assert result.is_valid
        assert result.total_files == len(changes) == len(result.files)
        for diff_file, (path, deleted, added) in zip(result.files, changes):
            assert diff_file.path == path
            assert diff_file.additions == len(added)
            assert diff_file.deletions == len(deleted)
        assert result.total_additions == sum(f.additions for f in result.files)
        assert result.total_deletions == sum(f.deletions for f in result.files)

    @given(changes=file_changes())
    def test_repeat_parsing_is_stable(self, changes):
        """
        Property: normalizing the same text twice gives identical output.

        Given: Any generated diff
        When: It is normalized twice, and once more with CRLF line endings
        Then: All three results serialize identically
        """
        diff_text = build_git_diff(changes)

        first = normalize_diff(diff_text).to_dict()
        second = normalize_diff(diff_text).to_dict()
        crlf = normalize_diff(diff_text.replace('\n', '\r\n')).to_dict()

        assert first == second == crlf

    @given(parts=st.lists(segment, min_size=1, max_size=6), strip_level=st.integers(min_value=0, max_value=8))
    def test_strip_level(self, parts, strip_level):
        """
        Property: stripping drops leading segments but never empties a path.

        Given: A path of N segments and a strip level
        When: The strip level is applied
        Then: Levels below N drop that many segments, others keep the path
        """
        path = '/'.join(parts)
        stripped = apply_strip_level(path, strip_level)

        if strip_level < len(parts):
            assert stripped == '/'.join(parts[strip_level:])
        else:
            assert stripped == path
        assert stripped

    @given(changes=file_changes(), strip_level=st.integers(min_value=0, max_value=5))
    def test_strip_level_applies_to_every_file(self, changes, strip_level):
        diff_text = build_git_diff(changes)

        assert extract_diff_files(diff_text, strip_level) == [
            apply_strip_level(path, strip_level) for path, _, _ in changes
        ]
