"""
Tests for the corpus linter and the bundled corpus.
"""

import json
import os
import re

import pytest

from mastracheck.core.engine import BUNDLED_CORPUS, BUNDLED_RULES
from mastracheck.core.findings import Impact
from mastracheck.core.lint import lint_corpus
from mastracheck.core.loader import load_rules
from mastracheck.core.rules import RuleDirectoryError

GOOD_FRONT = "title: Good\nimpact: HIGH\ncategory: config\n"


class TestLintCorpus:
    """Tests for linting a rule directory."""

    def test_clean_corpus(self, rules_dir, write_rule):
        write_rule("a.md", GOOD_FRONT)
        write_rule("b.md", GOOD_FRONT + "conditional: true\nappliesWhen: agents are used\n")

        report = lint_corpus(rules_dir)

        assert report.ok
        assert report.rules_checked == 2

    def test_missing_impact_is_one_issue(self, rules_dir, write_rule):
        write_rule("a-good.md", GOOD_FRONT)
        write_rule("b-missing-impact.md", "title: Broken\ncategory: config\n")
        write_rule("c-good.md", GOOD_FRONT)

        report = lint_corpus(rules_dir)

        assert len(report.issues) == 1
        issue = report.issues[0]
        assert issue.code == "malformed-rule"
        assert issue.path == "b-missing-impact.md"
        assert "impact" in issue.message
        assert report.rules_checked == 3
        assert len(load_rules(rules_dir).rules) == 2

    def test_conditional_without_applies_when(self, rules_dir, write_rule):
        write_rule("a.md", GOOD_FRONT + "conditional: true\n")

        report = lint_corpus(rules_dir)

        assert [(i.code, i.path) for i in report.issues] == [("missing-applies-when", "a.md")]
        assert str(report.issues[0]) == "a.md: [missing-applies-when] conditional rule does not declare appliesWhen"

    def test_duplicate_ids(self, rules_dir, write_rule):
        write_rule("one/a.md", GOOD_FRONT)
        write_rule("two/a.md", GOOD_FRONT)

        report = lint_corpus(rules_dir)

        assert [i.path for i in report.issues] == ["two/a.md"]
        assert report.to_dict()["issues"][0]["code"] == "malformed-rule"

    def test_missing_directory(self, tmp_path):
        with pytest.raises(RuleDirectoryError):
            lint_corpus(tmp_path / "missing")


class TestBundledCorpus:
    """Structural invariants of the bundled rule corpus."""

    @pytest.fixture(scope="class")
    def loaded(self):
        return load_rules(BUNDLED_RULES)

    def test_lints_clean(self):
        report = lint_corpus(BUNDLED_RULES)
        assert report.ok, [str(i) for i in report.issues]

    def test_every_file_loads(self, loaded):
        files = [
            name for name in os.listdir(BUNDLED_RULES)
            if name.endswith(".md") and not name.startswith("_")
        ]
        assert loaded.errors == []
        assert len(loaded.rules) == len(files)

    def test_required_fields(self, loaded):
        for rule in loaded.rules:
            assert rule.title, rule.id
            assert rule.category, rule.id
            assert isinstance(rule.impact, Impact), rule.id
            assert rule.impact_description, rule.id
            assert rule.tags, rule.id
            assert rule.doc_link and rule.doc_link.startswith("https://mastra.ai/"), rule.id

    def test_ids_follow_section_prefixes(self, loaded):
        with open(os.path.join(BUNDLED_RULES, "_sections.md"), encoding="utf-8") as f:
            sections = f.read()
        prefixes = set(re.findall(r"`([a-z]+-)`", sections))
        for rule in loaded.rules:
            assert any(rule.id.startswith(p) for p in prefixes), rule.id

    def test_conditional_rules_declare_activation(self, loaded):
        conditional = [r for r in loaded.rules if r.conditional]
        assert conditional
        for rule in conditional:
            assert rule.applies_when, rule.id
            assert rule.activation is not None, rule.id

    def test_every_impact_is_represented(self, loaded):
        assert {r.impact for r in loaded.rules} == set(Impact)

    def test_quick_check_rule(self, loaded):
        rule = loaded.get("security-no-hardcoded-keys")
        assert rule.check.expect == "absent"
        assert rule.check.paths == ("src/",)
        assert rule.check.redact

    def test_manual_rule(self, loaded):
        assert loaded.get("deploy-readme-setup").check is None

    def test_skill_files(self):
        for name in ("SKILL.md", "AGENTS.md", "README.md", "metadata.json"):
            assert os.path.isfile(os.path.join(BUNDLED_CORPUS, name)), name
        with open(os.path.join(BUNDLED_CORPUS, "metadata.json"), encoding="utf-8") as f:
            assert json.load(f)["name"] == "mastra-system-check"
