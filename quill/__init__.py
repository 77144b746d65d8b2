"""
QUILL - LaTeX resume compilation with repair and page-budget enforcement

Turns LaTeX written by a generative model into a PDF resume that fits a
two-page budget, repairing the syntax damage such output tends to carry.

Architecture:
- Generation Context: Model calls and extraction of the LaTeX document
- Repair Context: Sanitization and diagnostic-driven fixes
- Rendering Context: Remote and local PDF compilation
- Pipeline Context: Compile/repair/compress loop, progress and caching
"""

__version__ = "0.1.0"
