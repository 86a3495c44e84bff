"""Structured output schema for model review comments."""

from typing import Literal

from pydantic import BaseModel, Field

from .diff_types import Side


class ReviewComment(BaseModel):
    """A single review comment produced by the model."""

    sha: str = Field(description="The SHA of the commit needing a comment.")
    file: str = Field(description="The relative path to the file that necessitates a comment.")
    line: int = Field(
        description="The line of the blob in the pull request diff that the comment applies to."
    )
    side: Side = Field(
        description=(
            "In a split diff view, the side of the diff that the pull request's changes appear on. "
            "Use LEFT for deletions that appear in red. Use RIGHT for additions that appear in green "
            "or unchanged lines that appear in white and are shown for context."
        )
    )
    body: str = Field(description="The text of the review comment. May be formatted as markdown.")
    severity: Literal["info", "warning", "error"]
