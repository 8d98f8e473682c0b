"""SubmissionJudge — completed drawing or writing in, encouraging judgment out.

The remote `judge-submission` function decides between multimodal judging
(drawings carrying a data-URI image) and text-only judging. This side only
checks the envelope, clamps the judgment and falls back on any failure.
"""

from __future__ import annotations

import logging
import random
from typing import Any

from symbal.fallback import fallback_judgment
from symbal.models import Judgment, JudgingOutcome, Submission, TaskDescriptor
from symbal.remote import JUDGE_SUBMISSION, Remote
from symbal.validation import validate_judgment

logger = logging.getLogger(__name__)


class SubmissionJudge:
    def __init__(self, remote: Remote, rng: random.Random | None = None) -> None:
        self._remote = remote
        self._rng = rng or random.Random()

    async def judge(self, submission: Submission, task: TaskDescriptor) -> Judgment:
        """Return a judgment with a score of at least 7; never raises."""
        outcome = await self.judge_outcome(submission, task)
        return outcome.judgment

    async def judge_outcome(self, submission: Submission, task: TaskDescriptor) -> JudgingOutcome:
        payload = {"submission": submission.to_wire(), "originalTask": task.to_wire()}
        try:
            response = await self._remote.invoke(JUDGE_SUBMISSION, payload)
            judgment = validate_judgment(_judgment_from(response), submission)
        except Exception as e:
            logger.warning("Judging failed for task %s, using fallback: %s", submission.task_id, e)
            return JudgingOutcome(
                judgment=fallback_judgment(submission, self._rng),
                degraded=True,
                error=str(e),
            )
        return JudgingOutcome(judgment=judgment)


def _judgment_from(response: dict[str, Any]) -> dict[str, Any]:
    if response.get("success") is not True:
        raise ValueError(f"Remote judging unsuccessful: {response.get('error', 'no reason given')}")
    judgment = response.get("judgment")
    if not isinstance(judgment, dict):
        raise ValueError("Remote response has no judgment")
    return judgment
