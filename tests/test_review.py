"""Tests for the review run orchestration."""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock

from reviewer.diff_types import CommitDetails, FilePatch, PRDetails
from reviewer.github import GitHubError
from reviewer.review import ReviewOptions, build_prompt, collect_diff, run_review
from reviewer.schemas import ReviewComment

PATCH = "@@ -0,0 +1,2 @@\n+first\n+second"


def char_limit(text: str, limit: int) -> int | None:
    return len(text) if len(text) <= limit else None


@pytest.fixture(autouse=True)
def char_tokenizer():
    """Count characters instead of tiktoken tokens."""
    with patch("reviewer.packer.within_token_limit", side_effect=char_limit), \
            patch("reviewer.review.count_tokens", side_effect=len):
        yield


@pytest.fixture
def pr():
    return PRDetails(number=1, title="Add feature", body="Details", head_sha="sha2", base_sha="base")


@pytest.fixture
def service(pr):
    """GitHubService double with two commits."""
    svc = MagicMock()
    svc.get_pr_details = AsyncMock(return_value=pr)
    svc.list_commit_shas = AsyncMock(return_value=["sha1", "sha2"])
    svc.get_commit_details = AsyncMock(side_effect=lambda sha: CommitDetails(
        sha=sha,
        message=f"commit {sha}",
        patches=(FilePatch("src/app.py", PATCH), FilePatch("dist/index.js", PATCH)),
    ))
    svc.list_files = AsyncMock(return_value=(FilePatch("src/app.py", PATCH),))
    svc.create_review = AsyncMock()
    svc.create_issue_comment = AsyncMock()
    return svc


class TestCollectDiff:
    """Tests for collect_diff."""

    @pytest.mark.asyncio
    async def test_last_commit(self, service):
        """last-commit mode fetches only the newest commit."""
        _, commits = await collect_diff(service, ReviewOptions(diff_mode="last-commit", exclude_patterns=[]))

        assert [c.sha for c in commits] == ["sha2"]
        service.get_commit_details.assert_awaited_once_with("sha2")

    @pytest.mark.asyncio
    async def test_commits_mode_respects_limit(self, service):
        """commits mode keeps the newest commit_limit commits, oldest first."""
        service.list_commit_shas = AsyncMock(return_value=["sha0", "sha1", "sha2"])
        _, commits = await collect_diff(service, ReviewOptions(diff_mode="commits", commit_limit=2, exclude_patterns=[]))

        assert [c.sha for c in commits] == ["sha1", "sha2"]

    @pytest.mark.asyncio
    async def test_entire_pr(self, service):
        """entire-pr mode reviews the PR files at the head commit."""
        _, commits = await collect_diff(service, ReviewOptions(diff_mode="entire-pr", exclude_patterns=[]))

        assert len(commits) == 1
        assert commits[0].sha == "sha2"
        assert commits[0].message == "Add feature\n\nDetails"
        service.get_commit_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_excluded_files_removed(self, service):
        """Files matching exclude patterns are dropped."""
        _, commits = await collect_diff(service, ReviewOptions(diff_mode="last-commit", exclude_patterns=["dist/**/*"]))

        assert [p.filename for p in commits[0].patches] == ["src/app.py"]

    @pytest.mark.asyncio
    async def test_fully_excluded_commit_dropped(self, service):
        """A commit with every file excluded disappears."""
        _, commits = await collect_diff(service, ReviewOptions(diff_mode="commits", exclude_patterns=["*"]))

        assert commits == []


class TestBuildPrompt:
    """Tests for build_prompt."""

    def test_commit_blocks(self, pr):
        """Commits mode packs commit blocks under the PR header."""
        commits = [CommitDetails(sha="sha1", message="m", patches=(FilePatch("a.py", PATCH),))]
        prompt = build_prompt(pr, commits, ReviewOptions(diff_mode="commits", token_limit=10_000))

        assert prompt.text.startswith("# Add feature\n\nDetails\n\n## Commit sha1\n")
        assert prompt.patches_used == 1

    def test_entire_pr_names_head_commit(self, pr):
        """entire-pr mode lists bare patches and names the head commit."""
        commits = [CommitDetails(sha="sha2", message="m", patches=(FilePatch("a.py", PATCH),))]
        prompt = build_prompt(pr, commits, ReviewOptions(diff_mode="entire-pr", token_limit=10_000))

        assert "Head commit: sha2" in prompt.text
        assert "\n## a.py\n" in prompt.text
        assert prompt.used[0].sha == "sha2"

    def test_nothing_fits(self, pr):
        """A budget too small for any patch yields None."""
        commits = [CommitDetails(sha="sha1", message="m", patches=(FilePatch("a.py", PATCH),))]

        assert build_prompt(pr, commits, ReviewOptions(diff_mode="commits", token_limit=10)) is None

    @pytest.mark.parametrize("diff_mode", ["entire-pr", "commits", "last-commit"])
    def test_no_commits(self, pr, diff_mode):
        """An empty commit list yields None in every mode."""
        assert build_prompt(pr, [], ReviewOptions(diff_mode=diff_mode, token_limit=10_000)) is None

    def test_partial_fit_warns(self, pr, caplog):
        """Skipped patches are reported as a warning."""
        commits = [CommitDetails(
            sha="sha1",
            message="m",
            patches=(FilePatch("a.py", PATCH), FilePatch("big.py", "+" + "x" * 5000)),
        )]
        prompt = build_prompt(pr, commits, ReviewOptions(diff_mode="commits", token_limit=500))

        assert prompt.patches_used == 1
        assert prompt.patches_skipped == 1
        assert "1 patches did not fit within token_limit = 500." in caplog.text


class TestRunReview:
    """Tests for run_review."""

    @pytest.mark.asyncio
    async def test_full_flow(self, service):
        """Comments from the model are posted on the reviewed commit."""
        model = MagicMock()
        model.review = AsyncMock(return_value=[
            ReviewComment(sha="sha2", file="src/app.py", line=2, side="RIGHT", body="Nit", severity="error"),
            ReviewComment(sha="sha2", file="src/app.py", line=99, side="RIGHT", body="Far away", severity="info"),
        ])
        options = ReviewOptions(diff_mode="last-commit", severity="error", exclude_patterns=[])

        outcome = await run_review(service, options, model=model)

        assert outcome.result.to_dict() == {"reviewChanges": 1, "reviewComments": 0, "issueComments": 1}
        model.review.assert_awaited_once_with(outcome.prompt.text)
        service.create_review.assert_awaited_once()
        assert service.create_review.await_args.args[:2] == ("sha2", "REQUEST_CHANGES")
        service.create_issue_comment.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_skipped_file_falls_back(self, service):
        """Comments on files that were not sent cannot be placed inline."""
        model = MagicMock()
        model.review = AsyncMock(return_value=[
            ReviewComment(sha="sha2", file="dist/index.js", line=1, side="RIGHT", body="x", severity="info"),
        ])
        options = ReviewOptions(diff_mode="last-commit", exclude_patterns=["dist/*"])

        outcome = await run_review(service, options, model=model)

        assert outcome.result.issue_comments == 1
        service.create_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dry_run_skips_model(self, service):
        """Dry runs stop after packing."""
        model = MagicMock()
        model.review = AsyncMock()

        outcome = await run_review(service, ReviewOptions(diff_mode="last-commit", dry_run=True, exclude_patterns=[]), model=model)

        assert outcome.prompt.patches_used == 2
        model.review.assert_not_awaited()
        service.create_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nothing_fits_skips_model(self, service):
        """No model call is made when the budget fits nothing."""
        model = MagicMock()
        model.review = AsyncMock()

        outcome = await run_review(service, ReviewOptions(diff_mode="last-commit", token_limit=5, exclude_patterns=[]), model=model)

        assert outcome is None
        model.review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_patches(self, service):
        """Without commits there is nothing to review."""
        service.list_commit_shas = AsyncMock(return_value=[])
        model = MagicMock()
        model.review = AsyncMock()

        assert await run_review(service, ReviewOptions(diff_mode="last-commit", exclude_patterns=[]), model=model) is None
        model.review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_suggestions(self, service):
        """An empty model answer posts nothing."""
        model = MagicMock()
        model.review = AsyncMock(return_value=[])

        outcome = await run_review(service, ReviewOptions(diff_mode="last-commit", exclude_patterns=[]), model=model)

        assert outcome.comments == []
        assert outcome.result is None
        service.create_review.assert_not_awaited()
        service.create_issue_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_github_error_propagates(self, service):
        """API failures abort the run with their message."""
        service.get_pr_details = AsyncMock(side_effect=GitHubError("Failed to get details for PR #1, status: 404"))

        with pytest.raises(GitHubError, match="status: 404"):
            await run_review(service, ReviewOptions(diff_mode="last-commit", exclude_patterns=[]), model=MagicMock())
