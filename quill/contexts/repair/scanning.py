"""
Brace and line scanning primitives for LaTeX repair.

Every function here reads LaTeX the same way:
- A backslash escapes exactly the next character (so `\\{` is a literal brace,
  while `\\\\` is a line break followed by whatever comes next).
- An unescaped `%` starts a comment that runs to the end of the line.
- Braces inside comments and escaped braces never count toward nesting.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from quill.contexts.repair.latex_patterns import DocumentPatterns

BLANK_LINES_PATTERN = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)*")


@dataclass(frozen=True)
class DocumentRegions:
    """
    A document split around its body.

    Attributes:
        preamble: Everything up to and including the first \\begin{document}
        body: Text between the preamble and the last \\end{document}
        tail: The last \\end{document} and anything after it
    """

    preamble: str
    body: str
    tail: str

    def join(self, body: Optional[str] = None) -> str:
        """Reassemble the document, optionally with a replacement body."""
        return self.preamble + (self.body if body is None else body) + self.tail


def split_document(doc: str) -> Optional[DocumentRegions]:
    """Split a document into preamble/body/tail, or None if the markers are missing."""
    if not doc:
        return None
    begin = doc.find(DocumentPatterns.BEGIN_DOCUMENT)
    end = doc.rfind(DocumentPatterns.END_DOCUMENT)
    if begin == -1 or end == -1:
        return None
    body_start = begin + len(DocumentPatterns.BEGIN_DOCUMENT)
    if end < body_start:
        return None
    return DocumentRegions(preamble=doc[:body_start], body=doc[body_start:end], tail=doc[end:])


def iter_braces(text: str, start: int = 0, end: Optional[int] = None) -> Iterator[Tuple[int, str]]:
    """
    Yield (position, char) for every unescaped brace outside comments.

    Scanning must start at a position that is not in the middle of an escape
    sequence or a comment.
    """
    end = len(text) if end is None else min(end, len(text))
    pos = start
    while pos < end:
        ch = text[pos]
        if ch == "\\":
            pos += 2
            continue
        if ch == "%":
            newline = text.find("\n", pos, end)
            if newline == -1:
                return
            pos = newline + 1
            continue
        if ch == "{" or ch == "}":
            yield pos, ch
        pos += 1


def nesting_depth(text: str) -> int:
    """Net brace depth at the end of text (opens minus closes)."""
    depth = 0
    for _, ch in iter_braces(text):
        depth += 1 if ch == "{" else -1
    return depth


def depth_at_lines(text: str) -> List[int]:
    """Brace depth at the start of each line (index 0 is line 1)."""
    line_starts = [0] + [i + 1 for i, ch in enumerate(text) if ch == "\n"]
    events = list(iter_braces(text))
    depths = []
    depth = 0
    idx = 0
    for line_start in line_starts:
        while idx < len(events) and events[idx][0] < line_start:
            depth += 1 if events[idx][1] == "{" else -1
            idx += 1
        depths.append(depth)
    return depths


def read_group(text: str, pos: int, limit: Optional[int] = None) -> Optional[int]:
    """
    Find the end of the brace group opening at pos.

    Returns:
        Index just past the matching `}`, or None if the group is still open at limit.

    Raises:
        ValueError: If text[pos] is not an opening brace
    """
    if pos >= len(text) or text[pos] != "{":
        raise ValueError(f"No opening brace at position {pos}")
    depth = 0
    for brace_pos, ch in iter_braces(text, pos, limit):
        depth += 1 if ch == "{" else -1
        if depth == 0:
            return brace_pos + 1
    return None


def comment_start(line: str) -> Optional[int]:
    """Index of the unescaped `%` that opens a comment on this line, or None."""
    pos = 0
    while pos < len(line):
        ch = line[pos]
        if ch == "\\":
            pos += 2
            continue
        if ch == "%":
            return pos
        if ch == "\n":
            return None
        pos += 1
    return None


def ends_in_comment(text: str) -> bool:
    """True when the last line of text is inside a comment."""
    last_line = text[text.rfind("\n") + 1:]
    return comment_start(last_line) is not None


def in_comment(text: str, index: int) -> bool:
    """True when position index sits inside a comment on its line."""
    line_start = text.rfind("\n", 0, index) + 1
    start = comment_start(text[line_start:index])
    return start is not None


def escape_unescaped(text: str, chars: str) -> Tuple[str, int]:
    """
    Prefix every unescaped occurrence of the given characters with a backslash.

    Returns:
        (escaped_text, number_of_characters_escaped)
    """
    out = []
    count = 0
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == "\\":
            out.append(text[pos:pos + 2])
            pos += 2
            continue
        if ch in chars:
            out.append("\\" + ch)
            count += 1
        else:
            out.append(ch)
        pos += 1
    return "".join(out), count


def collapse_blank_lines(text: str) -> str:
    """Replace every run of blank lines with a single newline."""
    return BLANK_LINES_PATTERN.sub("\n", text)


def line_window(line_count: int, center: int, radius: int) -> range:
    """
    Zero-based line indices within radius of a one-based line number.

    The window is clipped to the document.
    """
    center_idx = center - 1
    return range(max(0, center_idx - radius), min(line_count, center_idx + radius + 1))
