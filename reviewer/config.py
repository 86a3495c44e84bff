"""Shared configuration loaded from .env"""

import os
import re
import warnings
from dotenv import load_dotenv

# Make environment loading explicit with opt-out mechanism
if os.getenv("REVIEWER_AUTO_LOAD_DOTENV", "true").lower() == "true":
    load_dotenv()


def _get_int(env_var: str, default: int, name: str) -> int:
    """Safely convert environment variable to int with fallback.

    Args:
        env_var: Environment variable name
        default: Default value if env var is not set or invalid
        name: Human-readable name for error messages

    Returns:
        Integer value from env var or default
    """
    value = os.getenv(env_var, str(default))
    try:
        result = int(value)
        if result < 0:
            warnings.warn(f"{name} must be non-negative, got {result}. Using default {default}.")
            return default
        return result
    except ValueError:
        warnings.warn(f"Invalid {env_var} value '{value}', using default {default}")
        return default


def _parse_list_env(value: str | None) -> list[str]:
    """Parse comma-separated environment variable into list.

    Args:
        value: Environment variable value (may be None or empty string)

    Returns:
        List of non-empty stripped strings, or empty list
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


# Reasoning models (o1, o3-mini, gpt-5, ...) reject smaller completion budgets
MIN_REASONING_MAX_TOKENS = 16000
_REASONING_MODEL = re.compile(r"^(?:o[1345]|gpt-5)")


def _reasoning_max_tokens(model: str, value: int) -> int:
    """Raise a too small max_tokens to the floor reasoning models accept."""
    family = model.split("/")[-1].lower()
    if _REASONING_MODEL.match(family) and value < MIN_REASONING_MAX_TOKENS:
        warnings.warn(
            f"REVIEW_MAX_TOKENS must be at least {MIN_REASONING_MAX_TOKENS} for {model}, "
            f"got {value}. Using {MIN_REASONING_MAX_TOKENS}."
        )
        return MIN_REASONING_MAX_TOKENS
    return value


# GitHub API configuration
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
GITHUB_API_BASE = os.getenv("GITHUB_API_BASE", "https://api.github.com")

# Model configuration (any LiteLLM model string, e.g. azure/<deployment>)
REVIEW_MODEL = os.getenv("REVIEW_MODEL", "azure/o3-mini")
REVIEW_MAX_TOKENS = _reasoning_max_tokens(
    REVIEW_MODEL, _get_int("REVIEW_MAX_TOKENS", MIN_REASONING_MAX_TOKENS, "REVIEW_MAX_TOKENS")
)

# Review behaviour
DIFF_MODE = os.getenv("DIFF_MODE", "last-commit")
SEVERITY = os.getenv("SEVERITY", "info")
REASONING_EFFORT = os.getenv("REASONING_EFFORT", "medium")
TOKEN_LIMIT = _get_int("TOKEN_LIMIT", 50000, "TOKEN_LIMIT")
COMMIT_LIMIT = _get_int("COMMIT_LIMIT", 100, "COMMIT_LIMIT")
EXCLUDE_PATTERNS = _parse_list_env(os.getenv("EXCLUDE_PATTERNS"))

# Tokenizer used for prompt budgeting
TOKENIZER_ENCODING = os.getenv("TOKENIZER_ENCODING", "o200k_base")

# Accepted input values
DIFF_MODES = ("last-commit", "entire-pr", "commits")
REASONING_EFFORTS = ("low", "medium", "high")
MAX_COMMIT_LIMIT = 100

# GitHub request constants
DEFAULT_TIMEOUT = 30.0
DEFAULT_PER_PAGE = 100
USER_AGENT = "pr-reviewer"
