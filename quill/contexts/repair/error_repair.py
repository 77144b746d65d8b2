"""
Diagnostic-driven LaTeX repair.

Maps compiler log patterns to targeted source fixes. The pattern taxonomy is
data (repair_rules.yaml); each rule names one of the fix functions registered
in FIXES. Every rule that matches the log is applied in one pass, and a repair
only counts as a fix when the document actually changed.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from omegaconf import OmegaConf

from quill.contexts.repair.latex_patterns import CommandSets, LineBreakPatterns
from quill.contexts.repair.logger import _log_debug, log_repair_outcome
from quill.contexts.repair.sanitizer import (
    STYLING_CALL,
    balance_braces,
    repair_styling_macros,
)
from quill.contexts.repair.scanning import (
    depth_at_lines,
    escape_unescaped,
    in_comment,
    line_window,
    nesting_depth,
    read_group,
    split_document,
)

REPAIR_RULES_PATH = Path(__file__).with_name("repair_rules.yaml")

# Lines around the reported error line searched by line-scoped fixes
LINE_BREAK_LOOKBACK = 2
PARAGRAPH_WINDOW = 3
STYLING_WINDOW = 3
MAX_MERGED_LINES = 10

FILE_LINE_ERROR = re.compile(r"^[^\n:]*\.tex:(\d+):", re.MULTILINE)
CONTEXT_LINE = re.compile(r"^l\.(\d+)(?: (.*))?$", re.MULTILINE)
CONTROL_SEQUENCE = re.compile(r"\\([A-Za-z@]+)")
ERROR_LINE = re.compile(r"^(?:! |[^\n:]*\.tex:\d+: )(.+)$", re.MULTILINE)

TRAILING_BREAK = re.compile(LineBreakPatterns.LINE_BREAK + r"[ \t]*$")
STRUCTURAL_LINE = re.compile(r"^\s*(?:" + LineBreakPatterns.STRUCTURAL_START + r")")
BREAK_BEFORE_STRUCTURE = re.compile(
    LineBreakPatterns.LINE_BREAK + r"(\s*)(?=" + LineBreakPatterns.STRUCTURAL_START + r")"
)


@dataclass(frozen=True)
class Diagnostic:
    """
    Facts extracted from a compiler log.

    Attributes:
        log: The raw diagnostic log
        line_number: First source line the log points at (None if absent)
        undefined_command: Name of the undefined control sequence (no backslash)
        error_line: First error message line, for human-readable summaries
    """

    log: str
    line_number: Optional[int] = None
    undefined_command: Optional[str] = None
    error_line: Optional[str] = None


@dataclass
class RepairAttempt:
    """One sanitization or error-driven fix applied during a request."""

    description: str
    document_after: str


@dataclass
class RepairOutcome:
    """
    Result of attempt_fix().

    Attributes:
        fixed: True when at least one rule changed the document
        document: The revised document (unchanged when not fixed)
        description: What was changed, or why nothing could be
        rules: Names of the rules that changed the document
    """

    fixed: bool
    document: str
    description: str
    rules: List[str] = field(default_factory=list)


def parse_diagnostic(log: Optional[str]) -> Diagnostic:
    """Extract line number, undefined command and first error line from a compiler log."""
    log = log or ""

    line_number = None
    file_line = FILE_LINE_ERROR.search(log)
    context = CONTEXT_LINE.search(log)
    if file_line:
        line_number = int(file_line.group(1))
    elif context:
        line_number = int(context.group(1))

    undefined_command = None
    marker = log.find("Undefined control sequence")
    if marker != -1:
        after = CONTEXT_LINE.search(log, marker)
        if after and after.group(2):
            names = CONTROL_SEQUENCE.findall(after.group(2))
            if names:
                undefined_command = names[-1]

    error = ERROR_LINE.search(log)
    if error:
        error_line = error.group(1).strip()
    else:
        error_line = next((line.strip() for line in log.splitlines() if line.strip()), None)

    return Diagnostic(
        log=log,
        line_number=line_number,
        undefined_command=undefined_command,
        error_line=error_line[:200] if error_line else None,
    )


# --- Fix functions: (doc, diagnostic) -> doc ---


def _next_content_line(lines: List[str], idx: int) -> Optional[str]:
    for line in lines[idx + 1:]:
        if line.strip():
            return line
    return None


def drop_breaks_before_structure(doc: str, diagnostic: Diagnostic) -> str:
    """
    Remove line breaks that end a line right before a structural command.

    First near the reported line (the line itself and a couple before it), then
    anywhere in the body.
    """
    lines = doc.split("\n")
    if diagnostic.line_number:
        last = min(len(lines), diagnostic.line_number)
        for idx in range(max(0, last - 1 - LINE_BREAK_LOOKBACK), last):
            following = _next_content_line(lines, idx)
            if following is not None and STRUCTURAL_LINE.match(following):
                lines[idx] = TRAILING_BREAK.sub("", lines[idx])
    doc = "\n".join(lines)

    regions = split_document(doc)
    if regions is None:
        return doc
    return regions.join(BREAK_BEFORE_STRUCTURE.sub(r"\1", regions.body))


def _merge_styling_invocation(lines: List[str], idx: int) -> bool:
    """Join a styling-macro invocation that starts on lines[idx] onto one line."""
    merged = lines[idx]
    end = idx
    while end + 1 < len(lines) and end - idx < MAX_MERGED_LINES:
        following = lines[end + 1].strip()
        if nesting_depth(merged) > 0 or (following and following[0] in "{["):
            end += 1
            if following and following[0] in "{[":
                merged = merged.rstrip() + following
            elif following:
                merged = merged.rstrip() + " " + following
        else:
            break
    if end == idx:
        return False
    lines[idx:end + 1] = [merged]
    return True


def repair_styling_invocations(doc: str, diagnostic: Diagnostic) -> str:
    """Re-run the styling-macro repair, then merge a multi-line invocation near the error."""
    doc, _ = repair_styling_macros(doc)
    if not diagnostic.line_number:
        return doc

    lines = doc.split("\n")
    for idx in line_window(len(lines), diagnostic.line_number, STYLING_WINDOW):
        match = STYLING_CALL.search(lines[idx])
        if match and not in_comment(lines[idx], match.start()):
            if _merge_styling_invocation(lines, idx):
                break
    return "\n".join(lines)


def drop_blank_lines_in_groups(doc: str, diagnostic: Diagnostic) -> str:
    """Remove blank lines near the error that sit inside an open brace group."""
    if not diagnostic.line_number:
        return doc
    lines = doc.split("\n")
    depths = depth_at_lines(doc)
    window = line_window(len(lines), diagnostic.line_number, PARAGRAPH_WINDOW)
    doomed = {idx for idx in window if not lines[idx].strip() and depths[idx] > 0}
    if not doomed:
        return doc
    return "\n".join(line for idx, line in enumerate(lines) if idx not in doomed)


def unwrap_command(doc: str, name: str) -> str:
    """Replace every \\name{text} with text; drop bare \\name."""
    pattern = re.compile(r"(?<!\\)\\" + re.escape(name) + r"(?![A-Za-z@])[ \t]*")
    pieces = []
    pos = 0
    for match in pattern.finditer(doc):
        if match.start() < pos or in_comment(doc, match.start()):
            continue
        pieces.append(doc[pos:match.start()])
        group_end = None
        if match.end() < len(doc) and doc[match.end()] == "{":
            group_end = read_group(doc, match.end())
        if group_end is None:
            pos = match.end()
        else:
            pieces.append(doc[match.end() + 1:group_end - 1])
            pos = group_end
    pieces.append(doc[pos:])
    return "".join(pieces)


def unwrap_case_primitive(doc: str, diagnostic: Diagnostic) -> str:
    """Unwrap the undefined command when it is a known case/format primitive."""
    name = diagnostic.undefined_command
    if name not in CommandSets.CASE_PRIMITIVES:
        return doc
    # Nested calls surface one level per sweep
    for _ in range(5):
        revised = unwrap_command(doc, name)
        if revised == doc:
            break
        doc = revised
    return doc


def rebalance_body_braces(doc: str, diagnostic: Diagnostic) -> str:
    regions = split_document(doc)
    if regions is None:
        return doc
    body, _, _ = balance_braces(regions.body)
    return regions.join(body)


def escape_body_underscores(doc: str, diagnostic: Diagnostic) -> str:
    regions = split_document(doc)
    if regions is None:
        return doc
    body, _ = escape_unescaped(regions.body, "_")
    return regions.join(body)


FIXES: Dict[str, Callable[[str, Diagnostic], str]] = {
    "drop_breaks_before_structure": drop_breaks_before_structure,
    "repair_styling_invocations": repair_styling_invocations,
    "drop_blank_lines_in_groups": drop_blank_lines_in_groups,
    "unwrap_case_primitive": unwrap_case_primitive,
    "rebalance_body_braces": rebalance_body_braces,
    "escape_body_underscores": escape_body_underscores,
}


# --- Rule table ---


@dataclass(frozen=True)
class RepairRule:
    """One diagnostic pattern and the fix it triggers."""

    name: str
    pattern: re.Pattern
    fix: Callable[[str, Diagnostic], str]
    description: str

    def matches(self, log: str) -> bool:
        return bool(self.pattern.search(log))


def load_repair_rules(rules_path: Optional[Path] = None) -> List[RepairRule]:
    """
    Load the repair rule table.

    Args:
        rules_path: YAML file with a top-level `rules` list (default: repair_rules.yaml)

    Raises:
        FileNotFoundError: If the rules file doesn't exist
        ValueError: If a rule names an unregistered fix
    """
    rules_path = Path(rules_path) if rules_path is not None else REPAIR_RULES_PATH
    if not rules_path.exists():
        raise FileNotFoundError(f"Repair rules not found at {rules_path}")

    config = OmegaConf.to_container(OmegaConf.load(rules_path), resolve=True)

    rules = []
    for entry in config.get("rules", []):
        fix_name = entry["fix"]
        if fix_name not in FIXES:
            raise ValueError(f"Rule '{entry['name']}' names unknown fix '{fix_name}'")
        rules.append(
            RepairRule(
                name=entry["name"],
                pattern=re.compile(entry["pattern"]),
                fix=FIXES[fix_name],
                description=entry.get("description", entry["name"]),
            )
        )
    return rules


class RepairEngine:
    """
    Applies every rule whose pattern matches a compiler log.

    Rules are loaded once per engine; pass `rules` to substitute a custom table.
    """

    def __init__(self, rules: Optional[List[RepairRule]] = None, rules_path: Optional[Path] = None):
        self.rules = rules if rules is not None else load_repair_rules(rules_path)

    def matching_rules(self, log: str) -> List[RepairRule]:
        return [rule for rule in self.rules if rule.matches(log)]

    def attempt_fix(self, doc: str, diagnostic_log: str) -> RepairOutcome:
        """
        Propose a revised document for a failed compile.

        Args:
            doc: Source that failed to compile
            diagnostic_log: Compiler log of the failure

        Returns:
            RepairOutcome; `fixed` is False when no rule matched or no matching
            rule could change the source
        """
        diagnostic = parse_diagnostic(diagnostic_log)
        matched = self.matching_rules(diagnostic.log)
        error = diagnostic.error_line or "empty diagnostic log"

        if not matched:
            outcome = RepairOutcome(
                fixed=False,
                document=doc,
                description=f"No automatic fix available for: {error}",
            )
            log_repair_outcome(outcome)
            return outcome

        current = doc
        applied = []
        for rule in matched:
            revised = rule.fix(current, diagnostic)
            if revised != current:
                applied.append(rule)
                current = revised
            else:
                _log_debug(f"Rule '{rule.name}' matched but changed nothing")

        if not applied:
            names = ", ".join(rule.name for rule in matched)
            outcome = RepairOutcome(
                fixed=False,
                document=doc,
                description=f"Recognized {names} but no automatic fix changed the source ({error})",
            )
            log_repair_outcome(outcome)
            return outcome

        description = "; ".join(rule.description for rule in applied)
        if diagnostic.line_number:
            description += f" (error near line {diagnostic.line_number})"
        outcome = RepairOutcome(
            fixed=True,
            document=current,
            description=description,
            rules=[rule.name for rule in applied],
        )
        log_repair_outcome(outcome)
        return outcome


_default_engine: Optional[RepairEngine] = None


def attempt_fix(doc: str, diagnostic_log: str) -> RepairOutcome:
    """attempt_fix() using the default rule table."""
    global _default_engine
    if _default_engine is None:
        _default_engine = RepairEngine()
    return _default_engine.attempt_fix(doc, diagnostic_log)
