"""
Unit tests for guidance summarization and quality gate inference.
"""

import pytest

from compliance_reviewer.guidance.summarizer import RuleSummarizer, infer_quality_gates, summarize_rules


GUIDANCE = """# Security

[ASSERT] Never commit credentials or secrets
[ASSERT] disallow-path: ^secrets/

## Testing
[ASSERT] New code must include unit tests
Plain text is ignored.

# Docs
[ASSERT] You may update the README
"""


class TestRuleSummarizer:
    """Unit tests for RuleSummarizer."""

    def test_rules_in_document_order(self):
        rules = summarize_rules(GUIDANCE)

        assert [r.id for r in rules] == ['R1', 'R2', 'R3', 'R4']
        assert rules[0].text == 'Never commit credentials or secrets'
        assert rules[1].text == 'disallow-path: ^secrets/'

    def test_sections(self):
        rules = summarize_rules(GUIDANCE)
        assert [r.section for r in rules] == ['Security', 'Security', 'Testing', 'Docs']

    def test_categories(self):
        """Statement keywords decide first, section title second."""
        rules = summarize_rules(GUIDANCE)

        assert rules[0].category == 'security'
        assert rules[2].category == 'testing'
        assert rules[3].category == 'documentation'
        assert summarize_rules('# Security\n[ASSERT] rotate keys yearly')[0].category == 'security'

    def test_priorities(self):
        rules = summarize_rules(GUIDANCE)

        assert rules[0].priority == 'critical'
        assert rules[1].priority == 'critical'
        assert rules[2].priority == 'high'
        assert rules[3].priority == 'low'

    def test_max_items(self):
        assert len(summarize_rules(GUIDANCE, max_items=2)) == 2
        with pytest.raises(ValueError):
            RuleSummarizer().summarize(GUIDANCE, max_items=0)

    def test_empty(self):
        assert summarize_rules('') == []
        assert summarize_rules(None) == []

    def test_rule_without_section(self):
        rules = summarize_rules('[ASSERT] keep functions small')

        assert rules[0].section is None
        assert rules[0].category == 'compliance'
        assert rules[0].priority == 'medium'
        assert 'section' not in rules[0].to_dict()


class TestInferQualityGates:
    """Unit tests for quality gate inference."""

    def test_node_and_python(self):
        commands = infer_quality_gates(['web/package.json', 'pyproject.toml'])

        assert commands == [
            'npm run -s lint || true',
            'npm test --silent || true',
            'ruff check . || true',
            'pytest -q || true',
        ]

    def test_deduplicated(self):
        assert infer_quality_gates(['requirements.txt', 'pyproject.toml']) == ['ruff check . || true', 'pytest -q || true']

    def test_jvm_and_go(self):
        assert infer_quality_gates(['build.gradle.kts', 'go.mod']) == [
            'go vet ./... || true', 'go test ./... || true', 'mvn -q test || true'
        ]

    def test_nothing_known(self):
        assert infer_quality_gates(['README.md']) == []
