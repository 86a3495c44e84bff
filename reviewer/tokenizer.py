"""Token counting for prompt budgeting."""

from functools import lru_cache

import tiktoken

from .config import TOKENIZER_ENCODING


@lru_cache(maxsize=None)
def _get_encoding(name: str) -> tiktoken.Encoding:
    return tiktoken.get_encoding(name)


def count_tokens(text: str, encoding: str = TOKENIZER_ENCODING) -> int:
    """Count tokens in text."""
    return len(_get_encoding(encoding).encode(text, disallowed_special=()))


def within_token_limit(text: str, limit: int, encoding: str = TOKENIZER_ENCODING) -> int | None:
    """Return the token count of text if it fits in limit, else None."""
    count = count_tokens(text, encoding)
    if count > limit:
        return None
    return count
