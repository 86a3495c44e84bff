"""GitHub REST client: diff source and review sink for a pull request.

Supports GitHub.com and GitHub Enterprise via GITHUB_API_BASE.
"""

import logging
import re
from typing import Iterable

import httpx

from .config import (
    DEFAULT_PER_PAGE,
    DEFAULT_TIMEOUT,
    GITHUB_API_BASE,
    GITHUB_TOKEN,
    USER_AGENT,
)
from .diff_types import CommitDetails, FilePatch, InlineComment, PRDetails, ReviewEvent

logger = logging.getLogger(__name__)


class GitHubError(Exception):
    """A GitHub API call failed."""


def _patches(files: Iterable[dict] | None) -> tuple[FilePatch, ...]:
    # Binary and oversized files come back without a patch
    return tuple(FilePatch(filename=f["filename"], patch=f.get("patch") or "") for f in files or [])


class GitHubService:
    """Pull request access for one repository and PR number.

    Supports:
    - https://github.com/owner/repo/pull/123
    - https://github.enterprise.com/owner/repo/pull/456
    """

    _URL_PATTERN = re.compile(r"github[^/]*/([^/]+)/([^/]+)/pull/(\d+)")

    def __init__(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        token: str | None = GITHUB_TOKEN,
        api_base: str = GITHUB_API_BASE,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.pull_number = pull_number
        self.token = token
        self.api_base = api_base.rstrip("/")

    @classmethod
    def parse_pr_url(cls, url: str) -> tuple[str, str, int]:
        """Parse a GitHub PR URL into (owner, repo, number).

        Args:
            url: GitHub PR URL like https://github.com/owner/repo/pull/123

        Returns:
            Tuple of (owner, repo, pr_number)

        Raises:
            ValueError: If URL format is invalid
        """
        match = cls._URL_PATTERN.search(url)
        if not match:
            raise ValueError(f"Invalid GitHub PR URL: {url}")
        return match.group(1), match.group(2), int(match.group(3))

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "GitHubService":
        owner, repo, number = cls.parse_pr_url(url)
        return cls(owner, repo, number, **kwargs)

    @property
    def _repo_url(self) -> str:
        return f"{self.api_base}/repos/{self.owner}/{self.repo}"

    def _get_headers(self) -> dict[str, str]:
        """Get HTTP headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        url: str,
        action: str,
        params: dict | None = None,
        json: dict | None = None,
    ) -> httpx.Response:
        """Send a request, raising GitHubError on transport errors or non-2xx."""
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    params=params,
                    json=json,
                    timeout=DEFAULT_TIMEOUT,
                )
        except httpx.HTTPError as e:
            raise GitHubError(f"Failed to {action}: {e}") from e
        if not 200 <= resp.status_code < 300:
            raise GitHubError(f"Failed to {action}, status: {resp.status_code}")
        return resp

    async def _get_all_pages(self, url: str, action: str) -> list:
        """GET a listing endpoint, following Link rel="next" until exhausted."""
        items: list = []
        params: dict | None = {"per_page": DEFAULT_PER_PAGE}
        while url:
            resp = await self._request("GET", url, action, params=params)
            items.extend(resp.json())
            next_link = resp.links.get("next")
            url = next_link["url"] if next_link else None
            # The next URL already carries the query string
            params = None
        return items

    async def get_pr_details(self) -> PRDetails:
        """Fetch title, body, head/base SHAs and commit count of the PR."""
        resp = await self._request(
            "GET",
            f"{self._repo_url}/pulls/{self.pull_number}",
            f"get details for PR #{self.pull_number}",
        )
        data = resp.json()
        return PRDetails(
            number=data.get("number", self.pull_number),
            title=data.get("title", ""),
            body=data.get("body") or "",
            head_sha=data["head"]["sha"],
            base_sha=data["base"]["sha"],
            commit_count=data.get("commits", 0),
        )

    async def list_commit_shas(self) -> list[str]:
        """List the SHAs of the PR's commits, oldest first."""
        commits = await self._get_all_pages(
            f"{self._repo_url}/pulls/{self.pull_number}/commits",
            f"list commits for PR #{self.pull_number}",
        )
        return [c["sha"] for c in commits]

    async def get_commit_details(self, sha: str) -> CommitDetails:
        """Fetch a commit's message and per-file patches."""
        resp = await self._request(
            "GET",
            f"{self._repo_url}/commits/{sha}",
            f"get commit details for {sha}",
        )
        data = resp.json()
        return CommitDetails(
            sha=sha,
            message=data["commit"]["message"],
            patches=_patches(data.get("files")),
        )

    async def list_files(self) -> tuple[FilePatch, ...]:
        """Fetch the per-file patches of the whole PR."""
        files = await self._get_all_pages(
            f"{self._repo_url}/pulls/{self.pull_number}/files",
            f"list files for PR #{self.pull_number}",
        )
        return _patches(files)

    async def create_review(
        self,
        commit_sha: str,
        event: ReviewEvent,
        comments: list[InlineComment],
    ) -> None:
        """Post a review with inline comments on a commit."""
        await self._request(
            "POST",
            f"{self._repo_url}/pulls/{self.pull_number}/reviews",
            f"create review on PR #{self.pull_number}",
            json={
                "commit_id": commit_sha,
                "event": event,
                "comments": [c.to_dict() for c in comments],
            },
        )
        logger.info("Posted %s review with %d comments on %s", event, len(comments), commit_sha)

    async def create_issue_comment(self, body: str) -> None:
        """Post a top-level comment on the PR conversation."""
        await self._request(
            "POST",
            f"{self._repo_url}/issues/{self.pull_number}/comments",
            f"create comment on PR #{self.pull_number}",
            json={"body": body},
        )
