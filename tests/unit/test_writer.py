"""
Unit tests for the resume writer and the LLM provider helpers.

Providers are replaced with a stub that records prompts; no network access.
"""

import pytest

from quill.contexts.generation import GenerationFormatError, ResumeWriter
from quill.contexts.generation.prompts import RESUME_SYSTEM_PROMPT
from quill.utils import llm
from quill.utils.llm import LLMProvider, LLMResponse, call_with_retries, get_provider
from tests.helpers import wrap


class StalledError(RuntimeError):
    """A timeout that subclasses a retried error, as the SDKs' timeouts do."""


class StubProvider(LLMProvider):
    vendor = "stub"
    transient_errors = (RuntimeError,)
    fatal_errors = (StalledError,)

    def __init__(self, *replies):
        super().__init__("test-model", timeout=5, max_tokens=100)
        self.replies = list(replies)
        self.prompts = []

    def _request(self, system_prompt, user_prompt):
        self.prompts.append((system_prompt, user_prompt))
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model=self.model, input_tokens=10, output_tokens=20)


@pytest.mark.unit
class TestResumeWriter:
    """Tests for ResumeWriter."""

    def test_write_resume_returns_raw_output(self):
        provider = StubProvider("```latex\n...\n```")
        writer = ResumeWriter(provider=provider)

        assert writer.write_resume("Job text", "Resume text") == "```latex\n...\n```"

        system_prompt, user_prompt = provider.prompts[0]
        assert system_prompt == RESUME_SYSTEM_PROMPT
        assert "### JOB DESCRIPTION:\nJob text" in user_prompt
        assert "### MASTER RESUME:\nResume text" in user_prompt

    def test_compress_extracts_document(self):
        doc = wrap("\nShort\n")
        provider = StubProvider(f"Here you go:\n```latex\n{doc}```")
        writer = ResumeWriter(provider=provider)

        assert writer.compress(wrap("\nLong\n"), page_count=3) == doc.strip()
        _, user_prompt = provider.prompts[0]
        assert "at most 2 pages" in user_prompt
        assert "currently compiles to 3 pages" in user_prompt
        assert user_prompt.endswith(wrap("\nLong\n"))

    def test_compress_accepts_bare_body(self):
        provider = StubProvider("\\begin{document}\nShort\n\\end{document}\n")
        writer = ResumeWriter(provider=provider)

        assert writer.compress("x", page_count=3) == "\\begin{document}\nShort\n\\end{document}"

    def test_compress_rejects_non_latex(self):
        writer = ResumeWriter(provider=StubProvider("I removed two bullets."))

        with pytest.raises(GenerationFormatError) as exc_info:
            writer.compress("x", page_count=3)

        assert exc_info.value.raw_excerpt == "I removed two bullets."

    def test_provider_name(self):
        assert StubProvider().name == "stub/test-model"


@pytest.mark.unit
class TestProviderHelpers:
    """Tests for retry and provider selection."""

    def test_retry_then_success(self, monkeypatch):
        monkeypatch.setattr(llm.time, "sleep", lambda _: None)
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise RuntimeError("busy")
            return "ok"

        assert call_with_retries(flaky, (RuntimeError,), "stub") == "ok"
        assert len(attempts) == 3

    def test_retry_gives_up(self, monkeypatch):
        monkeypatch.setattr(llm.time, "sleep", lambda _: None)

        def always_busy():
            raise RuntimeError("busy")

        with pytest.raises(RuntimeError):
            call_with_retries(always_busy, (RuntimeError,), "stub", attempts=2)

    def test_other_errors_not_retried(self):
        attempts = []

        def broken():
            attempts.append(1)
            raise KeyError("bad request")

        with pytest.raises(KeyError):
            call_with_retries(broken, (RuntimeError,), "stub")
        assert len(attempts) == 1

    def test_fatal_subclass_of_transient_not_retried(self, monkeypatch):
        monkeypatch.setattr(llm.time, "sleep", lambda _: None)
        attempts = []

        def stalled():
            attempts.append(1)
            raise StalledError("read timed out")

        with pytest.raises(StalledError):
            call_with_retries(stalled, (RuntimeError,), "stub", fatal=(StalledError,))
        assert len(attempts) == 1

    def test_provider_timeout_not_retried(self, monkeypatch):
        """One timed-out call ends generate(); the queued reply is never requested."""
        monkeypatch.setattr(llm.time, "sleep", lambda _: None)
        provider = StubProvider(StalledError("read timed out"), "late reply")

        with pytest.raises(StalledError):
            provider.generate("system", "user")
        assert len(provider.prompts) == 1
        assert provider.replies == ["late reply"]

    def test_provider_retries_transient_error(self, monkeypatch):
        monkeypatch.setattr(llm.time, "sleep", lambda _: None)
        provider = StubProvider(RuntimeError("overloaded"), "ok")

        assert provider.generate("system", "user").content == "ok"
        assert len(provider.prompts) == 2

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider("nonexistent")

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            get_provider("openai")
