"""Remote function handlers: story generation and submission judging.

These run next to the LLM. Each LLM answer goes through the same validation
module the client uses, so whatever leaves this service is already clamped.

generate-story
  One LLM call per requested story, pausing `generation_delay` seconds
  between calls so a batch stays under the provider's rate limit. The whole
  batch runs within `generation_deadline`, which is shorter than the client's
  request timeout; each call gets at most `llm_timeout` or what is left of
  the budget. A failed or timed-out call contributes a fallback story, as
  does every story not reached before the deadline. `success` is false only
  when every story is a fallback.

judge-submission
  Drawings carrying a data-URI image are judged multimodally (image attached
  to the prompt); writing, and drawings without image data, are judged from
  their text content. Failures return a fallback judgment with success=false.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from typing import Any

from symbal.config import Settings
from symbal.fallback import fallback_judgment, fallback_task
from symbal.llm import LLM, Image, LLMError
from symbal.models import GenerationContext, Submission
from symbal.prompts import (
    JUDGE_PROMPT,
    STORY_PROMPT,
    PromptError,
    build_judge_context,
    build_story_context,
    render_prompt,
)
from symbal.validation import extract_json_object, validate_judgment, validate_task

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class FunctionHandlers:
    def __init__(
        self,
        llm: LLM,
        settings: Settings,
        rng: random.Random | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._llm = llm
        self._settings = settings
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._clock = clock

    async def generate_story(self, request: dict[str, Any]) -> dict[str, Any]:
        context = GenerationContext.from_request(request, max_count=self._settings.max_batch)
        count = context.requested_count
        deadline = self._clock() + self._settings.generation_deadline

        stories = []
        failures = 0
        for i in range(count):
            try:
                prompt = render_prompt(STORY_PROMPT, build_story_context(request, i))
                text = await self._call_llm(deadline, "story", prompt)
                stories.append(validate_task(extract_json_object(text), context, self._rng, i))
            except (LLMError, PromptError, ValueError, TimeoutError) as e:
                logger.warning("Story %d/%d failed, using fallback: %s", i + 1, count, e)
                failures += 1
                stories.append(fallback_task(context.mood, context.recent_task_types, self._rng))

            if i < count - 1 and deadline - self._clock() > self._settings.generation_delay:
                await self._sleep(self._settings.generation_delay)

        response: dict[str, Any] = {
            "success": failures < count,
            "stories": [s.to_wire() for s in stories],
            "count": len(stories),
        }
        if failures == count:
            response["error"] = "AI generation failed, using fallback"
        return response

    async def judge_submission(
        self, submission_body: dict[str, Any], original_task: dict[str, Any]
    ) -> dict[str, Any]:
        submission = Submission.model_validate(submission_body)
        image = submission.image_data() if submission.task_type == "drawing" else None

        try:
            prompt = render_prompt(
                JUDGE_PROMPT,
                build_judge_context(submission.to_wire(), original_task, has_image=image is not None),
            )
            deadline = self._clock() + self._settings.llm_timeout
            if image is not None:
                text = await self._call_llm(deadline, "judge_image", prompt, image=image)
            else:
                text = await self._call_llm(deadline, "judge_text", prompt)
            judgment = validate_judgment(extract_json_object(text), submission)
        except (LLMError, PromptError, ValueError, TimeoutError) as e:
            logger.warning("Judging task %s failed, using fallback: %s", submission.task_id, e)
            return {
                "success": False,
                "error": "AI judgment failed, using fallback",
                "judgment": fallback_judgment(submission, self._rng).to_wire(),
            }

        return {"success": True, "judgment": judgment.to_wire()}

    async def _call_llm(self, deadline: float, stage: str, prompt: str, image: Image | None = None) -> str:
        """One LLM call, bounded by llm_timeout and by what is left of `deadline`."""
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise TimeoutError("generation deadline reached before the call started")
        timeout = min(self._settings.llm_timeout, remaining)
        return await asyncio.wait_for(self._llm(stage, prompt, image=image), timeout=timeout)
