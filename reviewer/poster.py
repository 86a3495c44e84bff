"""Route model review comments onto the pull request.

Comments that map onto a diff line become inline review comments, grouped
per commit into a REQUEST_CHANGES review (severity at or above the
threshold) and a COMMENT review. Comments that cannot be placed inline are
posted as issue comments so they are never silently dropped.
"""

import logging
from typing import Iterable

from .diff_types import (
    CommitDetails,
    InlineComment,
    InlineReview,
    IssueComment,
    ReviewResult,
    RoutedComments,
    severity_rank,
)
from .diffparser import find_position
from .github import GitHubService
from .schemas import ReviewComment

COMMIT_NOT_FOUND = "commit not found"
LINE_NOT_IN_DIFF = "line not in diff"

logger = logging.getLogger(__name__)


def _plain_fallback_body(comment: ReviewComment) -> str:
    return f"Comment on line {comment.line} ({comment.side.value}) of file {comment.file}:\n\n{comment.body}"


def _out_of_range_body(comment: ReviewComment, patch: str) -> str:
    if patch and not patch.endswith("\n"):
        patch += "\n"
    return (
        f"{comment.body}\n\n"
        f"{comment.file}:{comment.line} ({comment.side.value})\n"
        f"```diff\n{patch}```\n"
    )


def route_comments(
    comments: Iterable[ReviewComment],
    commits: list[CommitDetails],
    threshold: str,
) -> RoutedComments:
    """Split review comments into per-commit inline reviews and issue comments.

    Args:
        comments: Comments returned by the model
        commits: Commits (with patches) the comments may refer to
        threshold: Lowest severity that requests changes

    Returns:
        RoutedComments with reviews ordered by commit, REQUEST_CHANGES first
    """
    threshold_rank = severity_rank(threshold)
    by_sha = {c.sha: c for c in reversed(commits)}
    grouped: dict[tuple[str, str], list[InlineComment]] = {}
    routed = RoutedComments()

    for comment in comments:
        commit = by_sha.get(comment.sha)
        if commit is None:
            logger.warning("Could not generate inline comment for %s: %s", comment.file, comment.body)
            logger.warning("- commit %s not found", comment.sha)
            routed.issue_comments.append(
                IssueComment(body=_plain_fallback_body(comment), reason=COMMIT_NOT_FOUND)
            )
            continue

        file_patch = commit.find_patch(comment.file)
        if file_patch is None:
            logger.warning("Could not generate inline comment for %s: %s", comment.file, comment.body)
            logger.warning("- patch not found in commit %s", commit.sha)
            routed.issue_comments.append(
                IssueComment(body=_plain_fallback_body(comment), reason=LINE_NOT_IN_DIFF)
            )
            continue

        position = find_position(file_patch.patch, comment.line, comment.side)
        if position is None:
            logger.warning("Could not generate inline comment for %s: %s", comment.file, comment.body)
            logger.warning("- line %d (%s) not in diff", comment.line, comment.side.value)
            routed.issue_comments.append(
                IssueComment(body=_out_of_range_body(comment, file_patch.patch), reason=LINE_NOT_IN_DIFF)
            )
            continue

        event = "REQUEST_CHANGES" if severity_rank(comment.severity) >= threshold_rank else "COMMENT"
        grouped.setdefault((commit.sha, event), []).append(
            InlineComment(
                path=comment.file,
                line=comment.line,
                side=comment.side,
                body=comment.body,
                position=position,
            )
        )

    seen: set[str] = set()
    for commit in commits:
        if commit.sha in seen:
            continue
        seen.add(commit.sha)
        for event in ("REQUEST_CHANGES", "COMMENT"):
            inline = grouped.get((commit.sha, event))
            if inline:
                routed.reviews.append(InlineReview(commit_sha=commit.sha, event=event, comments=inline))

    return routed


async def post_review_comments(
    service: GitHubService,
    comments: list[ReviewComment],
    threshold: str,
    commits: list[CommitDetails],
) -> ReviewResult:
    """Route comments and post them to the pull request, one call at a time."""
    routed = route_comments(comments, commits, threshold)
    result = ReviewResult()

    for review in routed.reviews:
        await service.create_review(review.commit_sha, review.event, review.comments)
        if review.event == "REQUEST_CHANGES":
            result.review_changes += len(review.comments)
        else:
            result.review_comments += len(review.comments)

    for issue_comment in routed.issue_comments:
        await service.create_issue_comment(issue_comment.body)
        result.issue_comments += 1

    return result
