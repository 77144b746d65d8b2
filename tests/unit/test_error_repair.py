"""
Unit tests for diagnostic-driven repair.

Each rule is exercised with a realistic log excerpt; the engine is checked for
its no-match and matched-but-unchanged outcomes and for rule-table loading.
"""

import pytest

from quill.contexts.repair import attempt_fix, parse_diagnostic
from quill.contexts.repair.error_repair import (
    RepairEngine,
    load_repair_rules,
    unwrap_case_primitive,
    unwrap_command,
)
from tests.helpers import wrap

TITLESEC_PREAMBLE = "\\documentclass{article}\n\\usepackage{titlesec}\n"


@pytest.fixture(scope="module")
def engine():
    return RepairEngine()


@pytest.mark.unit
class TestParseDiagnostic:
    """Tests for parse_diagnostic()."""

    def test_file_line_error(self):
        log = "./main.tex:7: Undefined control sequence.\nl.7 \\section{\\capitalisewords"
        diagnostic = parse_diagnostic(log)

        assert diagnostic.line_number == 7
        assert diagnostic.undefined_command == "capitalisewords"
        assert diagnostic.error_line == "Undefined control sequence."
        assert diagnostic.log == log

    def test_tex_style_error(self):
        log = "! Undefined control sequence.\nl.12 Hello \\textsc\n                {world}"
        diagnostic = parse_diagnostic(log)

        assert diagnostic.line_number == 12
        assert diagnostic.undefined_command == "textsc"
        assert diagnostic.error_line == "Undefined control sequence."

    @pytest.mark.parametrize("log", [None, ""])
    def test_empty_log(self, log):
        diagnostic = parse_diagnostic(log)

        assert diagnostic.log == ""
        assert diagnostic.line_number is None
        assert diagnostic.undefined_command is None
        assert diagnostic.error_line is None


@pytest.mark.unit
class TestRules:
    """One test per rule in the default table."""

    def test_missing_brace_near_reported_line(self, engine):
        doc = (
            "\\documentclass{article}\n\\begin{document}\nIntro text \\\\\n"
            "\\section{Experience}\n\\end{document}\n"
        )
        outcome = engine.attempt_fix(doc, "./main.tex:4: Missing } inserted.")

        assert outcome.fixed
        assert "Intro text \n\\section{Experience}" in outcome.document
        assert outcome.rules == ["missing_brace"]
        assert outcome.description == (
            "Removed line breaks placed directly before structural commands "
            "(error near line 4)"
        )

    def test_missing_open_brace_uses_same_rule(self, engine):
        doc = (
            "\\documentclass{article}\n\\begin{document}\nIntro text \\\\\n"
            "\\section{Experience}\n\\end{document}\n"
        )
        outcome = engine.attempt_fix(doc, "./main.tex:4: Missing { inserted.")

        assert outcome.fixed
        assert "Intro text \n\\section{Experience}" in outcome.document
        assert outcome.rules == ["missing_brace"]

    def test_missing_brace_anywhere_in_body(self, engine):
        doc = wrap("\nA \\\\ \\section{B}\n")
        outcome = engine.attempt_fix(doc, "! Missing } inserted.")

        assert outcome.fixed
        assert outcome.document == wrap("\nA  \\section{B}\n")

    def test_styling_macro_merged_onto_one_line(self, engine):
        preamble = TITLESEC_PREAMBLE + (
            "\\titleformat{\\section}\n{\\large}\n{}\n{0em}\n{}\n\\begin{document}"
        )
        log = (
            "Runaway argument?\n"
            "! Paragraph ended before \\ttl@straight@i was complete.\n"
            "l.3 \\titleformat{\\section}"
        )
        outcome = engine.attempt_fix(wrap("\nBody\n", preamble=preamble), log)

        assert outcome.fixed
        assert outcome.rules == ["styling_macro"]
        assert "\\titleformat{\\section}{\\large}{}{0em}{}\n\\begin{document}" in outcome.document

    def test_paragraph_ended_inside_group(self, engine):
        """The styling rule also matches the runaway argument but changes nothing."""
        doc = wrap("\n\\textbf{Led the team\n\nacross sites}\n")
        log = (
            "Runaway argument?\n{Led the team\n"
            "! Paragraph ended before \\textbf was complete.\n<to be read again>\n\\par\nl.5\n"
        )
        outcome = engine.attempt_fix(doc, log)

        assert outcome.fixed
        assert outcome.rules == ["paragraph_ended"]
        assert outcome.document == wrap("\n\\textbf{Led the team\nacross sites}\n")

    def test_undefined_case_primitive_unwrapped(self, engine):
        doc = wrap("\n\\textsc{Jane Doe}\n")
        outcome = engine.attempt_fix(doc, "! Undefined control sequence.\nl.3 \\textsc\n")

        assert outcome.fixed
        assert outcome.document == wrap("\nJane Doe\n")
        assert outcome.rules == ["undefined_control_sequence"]

    def test_extra_brace(self, engine):
        doc = wrap("\nDone} here\n")
        outcome = engine.attempt_fix(doc, "! Extra }, or forgotten $.\nl.3 Done}")

        assert outcome.fixed
        assert outcome.document == wrap("\nDone\\} here\n")
        assert outcome.rules == ["extra_brace"]

    def test_missing_dollar(self, engine):
        doc = wrap("\nUsed snake_case names\n")
        log = "! Missing $ inserted.\n<inserted text>\n$\nl.3 Used snake_"
        outcome = engine.attempt_fix(doc, log)

        assert outcome.fixed
        assert outcome.document == wrap("\nUsed snake\\_case names\n")
        assert outcome.description == (
            "Escaped bare underscores in the document body (error near line 3)"
        )


@pytest.mark.unit
class TestRepairEngine:
    """Engine-level outcomes."""

    def test_every_matching_rule_applied_in_order(self, engine):
        doc = wrap("\nsnake_case}\n")
        log = "! Extra }, or forgotten $.\n! Missing $ inserted.\nl.3 snake_case}"
        outcome = engine.attempt_fix(doc, log)

        assert outcome.rules == ["extra_brace", "missing_dollar"]
        assert outcome.document == wrap("\nsnake\\_case\\}\n")
        assert outcome.description == (
            "Rebalanced braces in the document body; "
            "Escaped bare underscores in the document body (error near line 3)"
        )

    def test_unknown_command_not_fixed(self, engine):
        doc = wrap("\n\\foo{x}\n")
        outcome = engine.attempt_fix(doc, "! Undefined control sequence.\nl.3 \\foo")

        assert not outcome.fixed
        assert outcome.document == doc
        assert outcome.rules == []
        assert outcome.description.startswith(
            "Recognized undefined_control_sequence but no automatic fix changed the source"
        )

    def test_unrecognized_log(self, engine):
        doc = wrap("\nBody\n")
        outcome = engine.attempt_fix(doc, "! LaTeX Error: File `fancy.sty' not found.")

        assert not outcome.fixed
        assert outcome.document == doc
        assert outcome.description == (
            "No automatic fix available for: LaTeX Error: File `fancy.sty' not found."
        )

    def test_empty_rule_table(self):
        outcome = RepairEngine(rules=[]).attempt_fix("x", "! Missing } inserted.")
        assert not outcome.fixed
        assert outcome.description.startswith("No automatic fix available")

    def test_module_level_attempt_fix(self):
        log = "! Undefined control sequence.\nl.3 \\MakeUppercase"
        outcome = attempt_fix(wrap("\n\\MakeUppercase{x}\n"), log)
        assert outcome.document == wrap("\nx\n")


@pytest.mark.unit
class TestUnwrap:
    """Tests for unwrap_command() and unwrap_case_primitive()."""

    def test_group_and_bare_forms(self):
        text = "\\textsc{Jane \\textbf{Doe}} and \\textsc x"
        assert unwrap_command(text, "textsc") == "Jane \\textbf{Doe} and x"

    def test_comment_untouched(self):
        text = "% \\textsc{x}\n"
        assert unwrap_command(text, "textsc") == text

    def test_longer_name_untouched(self):
        assert unwrap_command("\\textscx{a}", "textsc") == "\\textscx{a}"

    def test_nested_calls(self):
        diagnostic = parse_diagnostic("! Undefined control sequence.\nl.1 \\textsc")
        assert unwrap_case_primitive("\\textsc{\\textsc{a}}", diagnostic) == "a"


@pytest.mark.unit
class TestLoadRepairRules:
    """Tests for load_repair_rules()."""

    def test_default_table_order(self):
        names = [rule.name for rule in load_repair_rules()]
        assert names == [
            "missing_brace",
            "styling_macro",
            "paragraph_ended",
            "undefined_control_sequence",
            "extra_brace",
            "missing_dollar",
        ]

    def test_custom_table(self, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text(
            "rules:\n"
            "  - name: underscores\n"
            "    pattern: 'Missing \\$'\n"
            "    fix: escape_body_underscores\n"
        )
        rules = load_repair_rules(rules_file)

        assert len(rules) == 1
        assert rules[0].description == "underscores"
        assert rules[0].matches("! Missing $ inserted.")

    def test_unknown_fix(self, tmp_path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text("rules:\n  - name: bogus\n    pattern: 'x'\n    fix: not_a_fix\n")

        with pytest.raises(ValueError, match="not_a_fix"):
            load_repair_rules(rules_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_repair_rules(tmp_path / "absent.yaml")
