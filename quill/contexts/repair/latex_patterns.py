"""
LaTeX Pattern Constants

Centralized LaTeX strings and command-name sets used by the sanitizer and the
diagnostic-driven repair rules. Organized into frozen dataclasses by category.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet


@dataclass(frozen=True)
class DocumentPatterns:
    """
    Document-level LaTeX markers.

    Used for document boundary detection and preamble/body/tail splitting.
    """
    DOCUMENTCLASS: str = r'\documentclass'
    BEGIN_DOCUMENT: str = r'\begin{document}'
    END_DOCUMENT: str = r'\end{document}'


@dataclass(frozen=True)
class CommandSets:
    """
    Command-name groups the repairs reason about (names without backslash).
    """
    # Commands a generator sometimes writes with a doubled backslash
    TYPO_PRONE: FrozenSet[str] = frozenset({
        'section', 'subsection', 'subsubsection',
        'textbf', 'textit', 'emph', 'underline',
        'item', 'begin', 'end',
        'resumeItem', 'resumeSubheading', 'projectHeading',
    })

    # Commands that open a new section
    SECTION_STARTERS: FrozenSet[str] = frozenset({'section', 'subsection', 'subsubsection'})

    # Empty emphasis commands that can be dropped
    EMPTY_EMPHASIS: FrozenSet[str] = frozenset({'textbf', 'textit', 'emph'})

    # Case/format primitives that are replaced by their argument when undefined
    CASE_PRIMITIVES: FrozenSet[str] = frozenset({
        'MakeUppercase', 'MakeLowercase', 'MakeTextUppercase', 'MakeTextLowercase',
        'uppercase', 'lowercase', 'textsc', 'capitalisewords', 'MakeTitlecase',
    })

    # Bare case transformations that consume the following argument group
    BARE_CASE_TRANSFORMS: FrozenSet[str] = frozenset({
        'uppercase', 'MakeUppercase', 'lowercase', 'MakeLowercase',
    })


@dataclass(frozen=True)
class LineBreakPatterns:
    """
    Regex fragments for line-breaking commands and structural starters.
    """
    # \\, \\[4pt], \\*, \newline, \linebreak (a lone \\ not preceded by another backslash)
    LINE_BREAK: str = r'(?<!\\)(?:\\\\\*?(?:\[[^\]\n]*\])?|\\newline\b|\\linebreak\b)'

    # Commands that begin a structural block on a new line
    STRUCTURAL_START: str = (
        r'\\(?:section|subsection|subsubsection|resumeSubheading|projectHeading)\b'
        r'|\\(?:begin|end)\{(?:itemize|enumerate|description)\}'
    )

    # Commands that begin a section
    SECTION_START: str = r'\\(?:section|subsection|subsubsection)\b'


# Minimum number of mandatory brace groups for section-styling commands
STYLING_MACRO_GROUPS: Dict[str, int] = {
    'titleformat': 5,
    'titlespacing': 4,
}
