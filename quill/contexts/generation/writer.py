"""
Resume writer: the generative collaborator of the pipeline.

Wraps an LLMProvider with the two requests the pipeline makes:
- write_resume(): tailored resume LaTeX from a job description and a master resume
- compress(): shorter rewrite of a document that exceeds the page budget
"""

import time
from typing import Optional

from quill.contexts.generation.exceptions import GenerationFormatError
from quill.contexts.generation.logger import _log_debug, _log_info, log_llm_response
from quill.contexts.generation.prompts import (
    COMPRESSION_SYSTEM_PROMPT,
    COMPRESSION_USER_TEMPLATE,
    RESUME_SYSTEM_PROMPT,
    RESUME_USER_TEMPLATE,
)
from quill.contexts.generation.response_parser import extract_document
from quill.contexts.repair.latex_patterns import DocumentPatterns
from quill.utils.llm import LLMProvider, get_provider

PAGE_BUDGET = 2


class ResumeWriter:
    """
    Generative collaborator backed by an LLM provider.

    The provider is created lazily from environment configuration unless one is
    injected.
    """

    def __init__(self, provider: Optional[LLMProvider] = None):
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_provider()
        return self._provider

    def write_resume(self, job_description: str, master_resume: str) -> str:
        """
        Ask the model for a tailored resume.

        Returns:
            Raw model output (expected to contain a LaTeX document)
        """
        user_prompt = RESUME_USER_TEMPLATE.format(
            job_description=job_description, master_resume=master_resume
        )
        _log_info(f"Requesting resume from {self.provider.name}")
        start_time = time.time()
        response = self.provider.generate(RESUME_SYSTEM_PROMPT, user_prompt)
        log_llm_response(response, time.time() - start_time)
        return response.content

    def compress(self, latex: str, page_count: int, page_budget: int = PAGE_BUDGET) -> str:
        """
        Ask the model to shorten a document to the page budget.

        Args:
            latex: Document that compiled to too many pages
            page_count: Pages it compiled to
            page_budget: Maximum allowed pages

        Returns:
            The compressed document

        Raises:
            GenerationFormatError: If the output has no \\begin{document}
        """
        user_prompt = COMPRESSION_USER_TEMPLATE.format(
            latex=latex, page_count=page_count, page_budget=page_budget
        )
        _log_info(f"Requesting compression from {page_count} to {page_budget} page(s)")
        start_time = time.time()
        response = self.provider.generate(COMPRESSION_SYSTEM_PROMPT, user_prompt)
        log_llm_response(response, time.time() - start_time)

        compressed = extract_document(response.content) or (response.content or "").strip()
        if DocumentPatterns.BEGIN_DOCUMENT not in compressed:
            raise GenerationFormatError(
                "Compression did not return valid LaTeX", raw_output=response.content
            )
        _log_debug(f"Compressed document: {len(latex)} -> {len(compressed)} chars")
        return compressed
