"""Document and PDF builders shared by the test suites."""

import io

from PyPDF2 import PdfWriter

PREAMBLE = "\\documentclass{article}\n\\begin{document}"
END = "\\end{document}\n"


def wrap(body: str, preamble: str = PREAMBLE) -> str:
    """Build a document around a body."""
    return preamble + body + END


def build_pdf(pages: int = 1) -> bytes:
    """Real PDF bytes with the given number of blank pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
