"""StoryGenerator — mood and history in, creative-task descriptors out.

Flow:
  1. Send the serialised GenerationContext to the remote `generate-story`
     function, asking for `requested_count` descriptors in one round trip.
  2. Require {"success": true, "stories": [...]} and validate every story
     through the shared clamps (symbal.validation).
  3. Short batches are padded with locally synthesized tasks.
  4. Any failure along the way yields exactly one fallback task.

generate() never raises; the degraded flag on GenerationOutcome tells the
caller when fallback content was served.
"""

from __future__ import annotations

import logging
import random
from typing import Any

from symbal.fallback import fallback_task
from symbal.models import GenerationContext, GenerationOutcome, TaskDescriptor
from symbal.remote import GENERATE_STORY, Remote
from symbal.validation import validate_task

logger = logging.getLogger(__name__)


class StoryGenerator:
    def __init__(self, remote: Remote, rng: random.Random | None = None) -> None:
        self._remote = remote
        self._rng = rng or random.Random()

    async def generate(self, context: GenerationContext) -> list[TaskDescriptor]:
        """Return at least one task; never raises."""
        outcome = await self.generate_outcome(context)
        return outcome.tasks

    async def generate_outcome(self, context: GenerationContext) -> GenerationOutcome:
        try:
            response = await self._remote.invoke(GENERATE_STORY, context.to_request())
            stories = _stories_from(response)
            tasks = [
                validate_task(raw, context, self._rng, index)
                for index, raw in enumerate(stories[: context.requested_count])
            ]
        except Exception as e:
            logger.warning("Story generation failed, using fallback: %s", e)
            return GenerationOutcome(
                tasks=[self._fallback(context)],
                degraded=True,
                error=str(e),
            )

        missing = context.requested_count - len(tasks)
        if missing > 0:
            logger.warning(
                "Remote returned %d of %d stories, padding with fallback",
                len(tasks), context.requested_count,
            )
            tasks.extend(self._fallback(context) for _ in range(missing))
        return GenerationOutcome(tasks=tasks, degraded=missing > 0)

    def _fallback(self, context: GenerationContext) -> TaskDescriptor:
        return fallback_task(context.mood, context.recent_task_types, self._rng)


def _stories_from(response: dict[str, Any]) -> list[Any]:
    """Check the response envelope and return the raw story payloads."""
    if response.get("success") is not True:
        raise ValueError(f"Remote generation unsuccessful: {response.get('error', 'no reason given')}")
    stories = response.get("stories")
    if not isinstance(stories, list) or not stories:
        raise ValueError("Remote response has no stories")
    return stories
