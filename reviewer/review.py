"""Review run: collect diffs, pack the prompt, ask the model, post comments."""

import logging
from dataclasses import dataclass, field, replace

from .config import (
    COMMIT_LIMIT,
    DIFF_MODE,
    EXCLUDE_PATTERNS,
    REASONING_EFFORT,
    SEVERITY,
    TOKEN_LIMIT,
)
from .diff_types import CommitDetails, PackResult, PRDetails, ReviewResult
from .github import GitHubService
from .model import ReviewModel
from .packer import pack_commits, pack_patches
from .poster import post_review_comments
from .schemas import ReviewComment
from .tokenizer import count_tokens
from .validators import is_excluded

logger = logging.getLogger(__name__)


@dataclass
class ReviewOptions:
    """Settings for one review run."""
    diff_mode: str = DIFF_MODE
    severity: str = SEVERITY
    reasoning_effort: str = REASONING_EFFORT
    token_limit: int = TOKEN_LIMIT
    commit_limit: int = COMMIT_LIMIT
    exclude_patterns: list[str] = field(default_factory=lambda: list(EXCLUDE_PATTERNS))
    dry_run: bool = False


@dataclass
class ReviewOutcome:
    """What a review run produced."""
    prompt: PackResult
    comments: list[ReviewComment] = field(default_factory=list)
    result: ReviewResult | None = None


def _filter_commit(commit: CommitDetails, patterns: list[str]) -> CommitDetails:
    if not patterns:
        return commit
    kept = tuple(p for p in commit.patches if not is_excluded(p.filename, patterns))
    dropped = len(commit.patches) - len(kept)
    if dropped:
        logger.info("Excluded %d files from commit %s", dropped, commit.sha)
    return replace(commit, patches=kept)


async def collect_diff(
    service: GitHubService, options: ReviewOptions
) -> tuple[PRDetails, list[CommitDetails]]:
    """Fetch the PR details and the commits to review.

    Returns:
        Tuple of (pr details, commits oldest first with excluded files removed
        and empty commits dropped)
    """
    pr = await service.get_pr_details()

    if options.diff_mode == "entire-pr":
        commits = [
            CommitDetails(sha=pr.head_sha, message=pr.description, patches=await service.list_files())
        ]
    else:
        shas = await service.list_commit_shas()
        limit = 1 if options.diff_mode == "last-commit" else options.commit_limit
        commits = [await service.get_commit_details(sha) for sha in shas[-limit:]]

    commits = [_filter_commit(c, options.exclude_patterns) for c in commits]
    return pr, [c for c in commits if c.patches]


def _header(pr: PRDetails) -> str:
    return f"# {pr.description}\n"


def build_prompt(pr: PRDetails, commits: list[CommitDetails], options: ReviewOptions) -> PackResult | None:
    """Pack the commits into a prompt within the token limit.

    Returns:
        The packed prompt, or None when nothing fits
    """
    if not commits:
        logger.warning("No patches to pack.")
        return None

    if options.diff_mode == "entire-pr":
        commit = commits[0]
        header = f"{_header(pr)}\nHead commit: {commit.sha}\n"
        packed = pack_patches(header, commit.patches, options.token_limit)
        # Route against the head commit restricted to what was sent
        prompt = PackResult(
            text=packed.text,
            used=[replace(commit, patches=tuple(packed.used))] if packed.used else [],
            skipped=[replace(commit, patches=tuple(packed.skipped))] if packed.skipped else [],
        )
    else:
        prompt = pack_commits(_header(pr), commits, options.token_limit)

    if prompt.empty:
        logger.warning("No patches fit within token limit.")
        return None
    if prompt.patches_skipped:
        logger.warning(
            "%d patches did not fit within token_limit = %d.",
            prompt.patches_skipped,
            options.token_limit,
        )

    logger.info("Diff Length: %d, Token Count: %d", len(prompt.text), count_tokens(prompt.text))
    logger.info("Patches Used: %d, Patches Skipped: %d", prompt.patches_used, prompt.patches_skipped)
    return prompt


async def run_review(
    service: GitHubService,
    options: ReviewOptions,
    model: ReviewModel | None = None,
) -> ReviewOutcome | None:
    """Run one review of a pull request.

    Returns:
        The outcome, or None when there was nothing to review
    """
    pr, commits = await collect_diff(service, options)
    if not commits:
        logger.info("No patches returned from GitHub.")
        return None

    prompt = build_prompt(pr, commits, options)
    if prompt is None:
        return None

    outcome = ReviewOutcome(prompt=prompt)
    if options.dry_run:
        return outcome

    model = model or ReviewModel(reasoning_effort=options.reasoning_effort)
    logger.info("Calling review model...")
    outcome.comments = await model.review(prompt.text)
    if not outcome.comments:
        logger.info("No suggestions from AI.")
        return outcome

    logger.info("Got %d suggestions from AI.", len(outcome.comments))
    outcome.result = await post_review_comments(service, outcome.comments, options.severity, prompt.used)
    return outcome
