"""
LaTeX Sanitizer

Conservative, meaning-preserving textual repairs applied to generated LaTeX
before the first compile attempt. Every pass only changes escaping or
structure; none rewrites content.

Passes (in order):
1. Special-character escaping (body)
2. Brace balancing (body)
3. Command-typo fixes (body)
4. Section-styling macro repair (whole document)
5. Markdown-artifact removal (body)

The preamble is trusted for passes 1-3 and 5 because it is boilerplate the
generator is told to copy verbatim, but generators still mangle the
\\titleformat/\\titlespacing calls that live there, hence pass 4.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from quill.contexts.repair.latex_patterns import (
    STYLING_MACRO_GROUPS,
    CommandSets,
    DocumentPatterns,
    LineBreakPatterns,
)
from quill.contexts.repair.scanning import (
    collapse_blank_lines,
    comment_start,
    ends_in_comment,
    in_comment,
    iter_braces,
    nesting_depth,
    read_group,
    split_document,
)

# The pass sequence is re-run until the document stops changing
MAX_ROUNDS = 4

ALWAYS_ESCAPED = "#$_"
PERCENT_AFTER_DIGIT = re.compile(r"\d[ \t]*$")

DOUBLED_BACKSLASH = re.compile(
    r"(?<!\\)\\\\("
    + "|".join(sorted(CommandSets.TYPO_PRONE, key=len, reverse=True))
    + r")(?![A-Za-z@])"
)
EMPTY_EMPHASIS = re.compile(
    r"(?<!\\)\\(?:" + "|".join(sorted(CommandSets.EMPTY_EMPHASIS)) + r")\{\s*\}"
)
BREAK_BEFORE_SECTION = re.compile(
    LineBreakPatterns.LINE_BREAK + r"(\s*)(?=" + LineBreakPatterns.SECTION_START + r")"
)

STYLING_CALL = re.compile(
    r"(?<!\\)\\(" + "|".join(STYLING_MACRO_GROUPS) + r")(?![A-Za-z@])\*?"
)
BARE_CASE_TRANSFORM = re.compile(
    r"\\(?:" + "|".join(sorted(CommandSets.BARE_CASE_TRANSFORMS, key=len, reverse=True))
    + r")(?![A-Za-z@])(?!\s*\{)"
)
NEXT_LINE_STARTS_COMMAND = re.compile(r"\n(?=[ \t]*\n|\\)")

MARKDOWN_BOLD = re.compile(r"(?<![\\*])\*\*(?=\S)([^*\n]+?)(?<=[^\s\\])\*\*(?!\*)")
MARKDOWN_ITALIC = re.compile(r"(?<![\\*\w])\*(?=[^\s*])([^*\n]+?)(?<=[^\s*\\])\*(?![*\w])")
MARKDOWN_CODE = re.compile(r"(?<![`\\])`(?=[^\s`'])([^`'\n]+?)(?<=\S)`(?![`'])")


@dataclass
class SanitizeResult:
    """
    Result of sanitizing a document.

    Attributes:
        latex: The sanitized document
        notes: Human-readable description of each pass that changed something
    """

    latex: str
    notes: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.notes)


# --- Pass 1: special characters ---


def _percent_follows_digit(text: str, pos: int) -> bool:
    """A `%` directly after a number (e.g. `40%`) is a percent sign, not a comment."""
    return bool(PERCENT_AFTER_DIGIT.search(text[max(0, pos - 3):pos]))


def escape_special_characters(body: str) -> Tuple[str, dict]:
    """
    Escape literal #, $, _ and percent-after-digit in the body.

    Returns:
        (escaped_body, {char: count})
    """
    out = []
    counts: dict = {}
    pos = 0
    while pos < len(body):
        ch = body[pos]
        if ch == "\\":
            out.append(body[pos:pos + 2])
            pos += 2
            continue
        if ch in ALWAYS_ESCAPED or (ch == "%" and _percent_follows_digit(body, pos)):
            out.append("\\" + ch)
            counts[ch] = counts.get(ch, 0) + 1
        else:
            out.append(ch)
        pos += 1
    return "".join(out), counts


# --- Pass 2: braces ---


def balance_braces(body: str) -> Tuple[str, int, int]:
    """
    Balance braces in the body without truncating anything.

    A `}` that would take the depth below zero is escaped in place; depth left
    open at the end is closed by appending `}` characters.

    Returns:
        (balanced_body, escaped_closers, appended_closers)
    """
    pieces = []
    depth = 0
    escaped = 0
    last = 0
    for pos, ch in iter_braces(body):
        if ch == "{":
            depth += 1
        elif depth == 0:
            pieces.append(body[last:pos])
            pieces.append("\\}")
            last = pos + 1
            escaped += 1
        else:
            depth -= 1
    pieces.append(body[last:])
    balanced = "".join(pieces)

    if depth > 0:
        if ends_in_comment(balanced):
            balanced += "\n"
        balanced += "}" * depth

    return balanced, escaped, depth


# --- Pass 3: command typos ---


def fix_command_typos(body: str) -> Tuple[str, List[str]]:
    """Collapse doubled backslashes, drop empty emphasis, drop breaks before sections."""
    notes = []

    body, doubled = DOUBLED_BACKSLASH.subn(r"\\\1", body)
    if doubled:
        notes.append(f"Collapsed {doubled} doubled backslash(es) before known commands.")

    body, empty = EMPTY_EMPHASIS.subn("", body)
    if empty:
        notes.append(f"Removed {empty} empty emphasis command(s).")

    body, breaks = BREAK_BEFORE_SECTION.subn(r"\1", body)
    if breaks:
        notes.append(f"Removed {breaks} line break(s) directly before section commands.")

    return body, notes


# --- Pass 4: section-styling macros ---


def _logical_line_end(doc: str, pos: int, limit: int) -> int:
    """
    Where to close a brace group left open at pos.

    The group ends with the line after which a blank line or a line starting
    with a command follows (or at limit), before any trailing comment.
    """
    match = NEXT_LINE_STARTS_COMMAND.search(doc, pos, limit)
    cut = match.start() if match else limit
    line_start = max(pos, doc.rfind("\n", 0, cut) + 1)
    comment = comment_start(doc[line_start:cut])
    if comment is not None:
        cut = line_start + comment
    return cut


def _group_follows(doc: str, pos: int, limit: int) -> bool:
    """True when the next non-whitespace character before limit opens a group."""
    while pos < limit and doc[pos] in " \t\r\n":
        pos += 1
    return pos < limit and doc[pos] == "{"


def _repair_invocation(
    doc: str, start: int, name_end: int, required: int, limit: int
) -> Tuple[str, int, List[str]]:
    """
    Repair one styling-macro invocation.

    Returns:
        (replacement_text, end_of_invocation_in_doc, change_descriptions)
    """
    pieces = [doc[start:name_end]]
    changes = []
    cursor = name_end
    groups = 0

    while groups < required:
        arg_start = cursor
        while arg_start < limit and doc[arg_start] in " \t\r\n":
            arg_start += 1
        if arg_start >= limit:
            break

        if doc[arg_start] == "[":
            # [shape] belongs to the invocation only when a mandatory group follows
            close = doc.find("]", arg_start, limit)
            if close == -1 or not _group_follows(doc, close + 1, limit):
                break
            pieces.append(doc[cursor:close + 1])
            cursor = close + 1
            continue
        if doc[arg_start] != "{":
            break

        group_end = read_group(doc, arg_start, limit)
        if group_end is None:
            cut = _logical_line_end(doc, arg_start, limit)
            missing = max(1, nesting_depth(doc[arg_start:cut]))
            pieces.append(doc[cursor:cut] + "}" * missing)
            cursor = cut
            changes.append(f"closed {missing} unbalanced brace(s)")
        else:
            pieces.append(doc[cursor:group_end])
            cursor = group_end
        groups += 1

    if groups < required:
        pieces.append("{}" * (required - groups))
        changes.append(f"added {required - groups} missing argument group(s)")

    invocation = "".join(pieces)

    collapsed = collapse_blank_lines(invocation)
    if collapsed != invocation:
        changes.append("collapsed blank lines")

    stripped = BARE_CASE_TRANSFORM.sub("", collapsed)
    if stripped != collapsed:
        changes.append("stripped bare case transformation")

    return stripped, cursor, changes


def repair_styling_macros(doc: str) -> Tuple[str, List[str]]:
    """
    Repair every \\titleformat / \\titlespacing invocation in the document.

    Invocations in the preamble are scanned up to \\begin{document}; those in
    the body up to \\end{document}.
    """
    begin = doc.find(DocumentPatterns.BEGIN_DOCUMENT)
    end = doc.rfind(DocumentPatterns.END_DOCUMENT)
    notes = []
    pieces = []
    pos = 0

    for match in STYLING_CALL.finditer(doc):
        if match.start() < pos or in_comment(doc, match.start()):
            continue
        name = match.group(1)
        if begin != -1 and match.start() < begin:
            limit = begin
        elif end != -1 and match.start() < end:
            limit = end
        else:
            limit = len(doc)

        replacement, invocation_end, changes = _repair_invocation(
            doc, match.start(), match.end(), STYLING_MACRO_GROUPS[name], limit
        )
        pieces.append(doc[pos:match.start()])
        pieces.append(replacement)
        pos = invocation_end
        if changes:
            notes.append(f"Repaired \\{name} invocation: {', '.join(changes)}.")

    pieces.append(doc[pos:])
    return "".join(pieces), notes


# --- Pass 5: markdown ---


def convert_markdown(body: str) -> Tuple[str, int]:
    """Convert stray markdown bold/italic/code into LaTeX emphasis commands."""
    body, bold = MARKDOWN_BOLD.subn(r"\\textbf{\1}", body)
    body, italic = MARKDOWN_ITALIC.subn(r"\\textit{\1}", body)
    body, code = MARKDOWN_CODE.subn(r"\\texttt{\1}", body)
    return body, bold + italic + code


# --- Orchestration ---


def _sanitize_once(doc: str) -> Tuple[str, List[str]]:
    regions = split_document(doc)
    if regions is None:
        return doc, []

    notes = []

    body, counts = escape_special_characters(regions.body)
    if counts:
        total = sum(counts.values())
        chars = " ".join(sorted(counts))
        notes.append(f"Escaped {total} special character(s) in the body: {chars}")

    body, escaped, appended = balance_braces(body)
    if escaped:
        notes.append(f"Escaped {escaped} stray closing brace(s) in place.")
    if appended:
        notes.append(f"Appended {appended} missing closing brace(s) before \\end{{document}}.")

    body, typo_notes = fix_command_typos(body)
    notes.extend(typo_notes)

    doc, styling_notes = repair_styling_macros(regions.join(body))
    notes.extend(styling_notes)

    regions = split_document(doc)
    if regions is None:
        return doc, notes
    body, converted = convert_markdown(regions.body)
    if converted:
        notes.append(f"Converted {converted} markdown emphasis artifact(s) to LaTeX.")

    return regions.join(body), notes


def sanitize_with_notes(doc: Optional[str]) -> SanitizeResult:
    """
    Sanitize a document and describe what changed.

    Total over any input: documents without \\begin{document}/\\end{document}
    come back untouched.
    """
    if not doc:
        return SanitizeResult(latex=doc or "")

    notes: List[str] = []
    current = doc
    for _ in range(MAX_ROUNDS):
        result, round_notes = _sanitize_once(current)
        if result == current:
            break
        notes.extend(round_notes)
        current = result

    return SanitizeResult(latex=current, notes=notes)


def sanitize(doc: Optional[str]) -> str:
    """Sanitize a document (idempotent: sanitize(sanitize(x)) == sanitize(x))."""
    return sanitize_with_notes(doc).latex
