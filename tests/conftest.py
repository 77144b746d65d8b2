"""Shared fixtures."""

import pytest

from tests.helpers import build_pdf


@pytest.fixture
def make_pdf():
    """Factory for real PDF bytes with a given number of blank pages."""
    return build_pdf
