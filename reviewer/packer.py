"""Greedy, order-preserving prompt packing under a token budget.

Items are tried in input order and appended whenever the accumulated text
plus the item still fits. An item that does not fit is skipped and packing
continues with the next one; nothing is ever reordered.
"""

import logging
from dataclasses import replace
from typing import Callable, Iterable, TypeVar

from .diff_types import CommitDetails, FilePatch, PackResult
from .tokenizer import within_token_limit

T = TypeVar("T")

TokenCheck = Callable[[str, int], int | None]

logger = logging.getLogger(__name__)


def _fenced(patch: str) -> str:
    if patch and not patch.endswith("\n"):
        patch += "\n"
    return f"```diff\n{patch}```\n"


def render_patch(patch: FilePatch) -> str:
    """Render a file patch as a top-level prompt block."""
    return f"\n## {patch.filename}\n{_fenced(patch.patch)}"


def render_commit_patch(patch: FilePatch) -> str:
    """Render a file patch nested under a commit block."""
    return f"\n### {patch.filename}\n{_fenced(patch.patch)}"


def render_commit_header(commit: CommitDetails) -> str:
    """Render the heading that introduces a commit's patches."""
    return f"\n## Commit {commit.sha}\n{commit.message.strip()}\n"


def pack(
    header: str,
    items: Iterable[T],
    token_limit: int,
    render: Callable[[T], str],
    within_limit: TokenCheck | None = None,
) -> PackResult[T]:
    """Append rendered items to header while the token budget allows.

    Args:
        header: Text the prompt starts with
        items: Items to pack, in the order they should appear
        token_limit: Maximum token count of the packed text
        render: Turns an item into its text block
        within_limit: Returns a token count when text fits in the limit, else
            None. Defaults to the tiktoken-backed within_token_limit.

    Returns:
        PackResult with the packed text and the used and skipped items
    """
    within_limit = within_limit or within_token_limit
    result: PackResult[T] = PackResult(text=header)
    for item in items:
        block = render(item)
        if within_limit(result.text + block, token_limit) is None:
            result.skipped.append(item)
            continue
        result.text += block
        result.used.append(item)
    return result


def pack_patches(
    header: str,
    patches: Iterable[FilePatch],
    token_limit: int,
    within_limit: TokenCheck | None = None,
) -> PackResult[FilePatch]:
    """Pack bare file patches."""
    return pack(header, patches, token_limit, render_patch, within_limit)


def pack_commits(
    header: str,
    commits: Iterable[CommitDetails],
    token_limit: int,
    within_limit: TokenCheck | None = None,
) -> PackResult[CommitDetails]:
    """Pack commits, each followed by as many of its patches as fit.

    A patch that overflows the budget is skipped on its own; the rest of the
    commit is still tried. A commit that fits no patches adds nothing, not
    even its heading. The used and skipped lists hold copies of the commits
    restricted to the patches that were used or skipped.
    """
    result: PackResult[CommitDetails] = PackResult(text=header)
    for commit in commits:
        inner = pack(
            result.text + render_commit_header(commit),
            commit.patches,
            token_limit,
            render_commit_patch,
            within_limit,
        )
        if inner.used:
            result.text = inner.text
            result.used.append(replace(commit, patches=tuple(inner.used)))
        else:
            logger.debug("No patches of commit %s fit within the token limit", commit.sha)
        if inner.skipped:
            result.skipped.append(replace(commit, patches=tuple(inner.skipped)))
    return result
