"""Shared fixtures — deterministic token counting without tiktoken downloads."""

from __future__ import annotations

import pytest

from ctxcompress.token_counter import TokenCounter


class WordEncoder:
    """One token per whitespace-separated word."""

    def encode(self, text: str) -> list[str]:
        return text.split()


@pytest.fixture
def counter() -> TokenCounter:
    return TokenCounter(WordEncoder())
