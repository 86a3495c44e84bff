"""Type definitions for diffs, commits and review routing."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Literal, TypeVar

T = TypeVar("T")

# Ordered from least to most severe. Ranking is looked up here, never derived
# from declaration order elsewhere.
SEVERITY_ORDER: tuple[str, ...] = ("info", "warning", "error")

ReviewEvent = Literal["REQUEST_CHANGES", "COMMENT"]


class Side(str, Enum):
    """Side of a split diff a line number refers to."""
    LEFT = "LEFT"    # old file numbering
    RIGHT = "RIGHT"  # new file numbering


def severity_rank(severity: str) -> int:
    """Return the position of a severity level in SEVERITY_ORDER.

    Raises:
        ValueError: If the level is unknown
    """
    try:
        return SEVERITY_ORDER.index(severity)
    except ValueError:
        raise ValueError(f"Unknown severity: {severity}") from None


@dataclass(frozen=True)
class FilePatch:
    """Unified diff for one file."""
    filename: str
    patch: str


@dataclass(frozen=True)
class CommitDetails:
    """A commit and the patches it introduces."""
    sha: str
    message: str
    patches: tuple[FilePatch, ...] = ()

    def find_patch(self, filename: str) -> FilePatch | None:
        for p in self.patches:
            if p.filename == filename:
                return p
        return None


@dataclass
class PRDetails:
    """Pull request metadata."""
    number: int
    title: str
    body: str
    head_sha: str
    base_sha: str
    commit_count: int = 0

    @property
    def description(self) -> str:
        return f"{self.title}\n\n{self.body}".strip()


@dataclass
class PackResult(Generic[T]):
    """Outcome of a greedy packing pass."""
    text: str
    used: list[T] = field(default_factory=list)
    skipped: list[T] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.used

    @property
    def patches_used(self) -> int:
        return _count_patches(self.used)

    @property
    def patches_skipped(self) -> int:
        return _count_patches(self.skipped)


def _count_patches(items: list) -> int:
    return sum(len(i.patches) if isinstance(i, CommitDetails) else 1 for i in items)


@dataclass
class InlineComment:
    """A review comment placed on a diff line."""
    path: str
    line: int
    side: Side
    body: str
    position: int

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "line": self.line,
            "side": self.side.value,
            "body": self.body,
        }


@dataclass
class InlineReview:
    """One review to post on a commit."""
    commit_sha: str
    event: ReviewEvent
    comments: list[InlineComment] = field(default_factory=list)


@dataclass
class IssueComment:
    """A top-level PR comment used when inline placement is impossible."""
    body: str
    reason: str


@dataclass
class RoutedComments:
    """Review comments split into inline reviews and issue comments."""
    reviews: list[InlineReview] = field(default_factory=list)
    issue_comments: list[IssueComment] = field(default_factory=list)


@dataclass
class ReviewResult:
    """Number of comments posted per destination."""
    review_changes: int = 0
    review_comments: int = 0
    issue_comments: int = 0

    def to_dict(self) -> dict:
        return {
            "reviewChanges": self.review_changes,
            "reviewComments": self.review_comments,
            "issueComments": self.issue_comments,
        }
