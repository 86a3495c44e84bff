"""Language model client that turns a packed diff into review comments."""

import asyncio
import logging

import dspy

from .config import REVIEW_MAX_TOKENS, REVIEW_MODEL
from .schemas import ReviewComment

logger = logging.getLogger(__name__)


class ReviewModelError(Exception):
    """The model did not produce a complete review."""


class ReviewSignature(dspy.Signature):
    """You are a helpful code reviewer. Review this pull request and provide any suggestions.
    Each comment must include the associated commit sha, file, line, side and severity: 'info', 'warning', or 'error'.
    Only comment on lines that need improvement. Comments may be formatted as markdown.
    If you have no comments, return an empty comments array."""

    diff: str = dspy.InputField(desc="Pull request description followed by the commits and patches to review")
    comments: list[ReviewComment] = dspy.OutputField(desc="Review comments, empty if there is nothing to improve")


def _finish_reason(lm: dspy.LM) -> str | None:
    """Finish reason of the LM's most recent completion, if recorded."""
    if not lm.history:
        return None
    response = lm.history[-1].get("response")
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    return getattr(choices[0], "finish_reason", None)


class ReviewModel:
    """Direct single-call review predictor."""

    def __init__(self, model: str = REVIEW_MODEL, reasoning_effort: str = "medium"):
        self.model = model
        self.reasoning_effort = reasoning_effort
        self._predictor = None
        self.lm = None

    def _ensure_configured(self):
        if self._predictor:
            return

        # Reasoning models only accept the default temperature
        self.lm = dspy.LM(
            self.model,
            temperature=1.0,
            max_tokens=REVIEW_MAX_TOKENS,
            reasoning_effort=self.reasoning_effort,
        )
        self._predictor = dspy.Predict(ReviewSignature)

    async def review(self, prompt: str) -> list[ReviewComment]:
        """Ask the model to review a packed diff.

        Raises:
            ReviewModelError: If the completion stopped for any reason but "stop"
        """
        self._ensure_configured()

        # DSPy is synchronous, keep the event loop free
        def _run_predictor():
            with dspy.context(lm=self.lm):
                return self._predictor(diff=prompt)

        pred = await asyncio.to_thread(_run_predictor)

        reason = _finish_reason(self.lm)
        if reason is not None and reason != "stop":
            raise ReviewModelError(f"Review request did not finish, got {reason}")

        comments = []
        for item in pred.comments or []:
            if isinstance(item, ReviewComment):
                comments.append(item)
            else:
                comments.append(ReviewComment.model_validate(item))
        logger.debug("Model returned %d comments", len(comments))
        return comments
