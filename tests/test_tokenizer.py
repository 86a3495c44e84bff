"""Tests for token counting."""

import pytest
from unittest.mock import patch, MagicMock

from reviewer import tokenizer


@pytest.fixture
def fake_encoding():
    """One token per whitespace-separated word."""
    encoding = MagicMock()
    encoding.encode.side_effect = lambda text, disallowed_special=(): text.split()
    tokenizer._get_encoding.cache_clear()
    with patch("reviewer.tokenizer.tiktoken.get_encoding", return_value=encoding) as mock_get:
        yield mock_get
    tokenizer._get_encoding.cache_clear()


class TestTokenizer:
    """Tests for count_tokens and within_token_limit."""

    def test_count_tokens(self, fake_encoding):
        assert tokenizer.count_tokens("one two three") == 3
        fake_encoding.assert_called_once_with(tokenizer.TOKENIZER_ENCODING)

    def test_within_limit_returns_count(self, fake_encoding):
        assert tokenizer.within_token_limit("one two", 2) == 2

    def test_over_limit_returns_none(self, fake_encoding):
        assert tokenizer.within_token_limit("one two three", 2) is None

    def test_deterministic(self, fake_encoding):
        """The same text always yields the same count."""
        text = "a b c d"
        assert tokenizer.count_tokens(text) == tokenizer.count_tokens(text)

    def test_encoding_cached(self, fake_encoding):
        """Encodings are loaded once per name."""
        tokenizer.count_tokens("a")
        tokenizer.count_tokens("b")
        assert fake_encoding.call_count == 1
