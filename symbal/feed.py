"""Story feed — the caller that ties generation, judging and the ledger together.

Refresh flow:
  1. Build a GenerationContext from the user's ledger (mood, level,
     completed ids, last task types) and their stored custom experiences.
  2. Ask the StoryGenerator for `count` tasks.
  3. Persist the tasks to the story cache so they survive a restart.

Completion flow:
  1. Wrap the user's content in a Submission for the task.
  2. Judge it (never fails).
  3. Credit the task's reward, capped at Settings.reward_cap.
  4. Record the completion (updates last task types).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from symbal.config import Settings
from symbal.generator import StoryGenerator
from symbal.judge import SubmissionJudge
from symbal.models import (
    GenerationContext,
    GenerationOutcome,
    JudgingOutcome,
    Submission,
    TaskDescriptor,
    UserExperience,
)
from symbal.progress import ProgressTracker
from symbal.storage import DEFAULT_MOOD, STORY_CACHE_KEY, Storage

logger = logging.getLogger(__name__)


class StoryFeed:
    def __init__(
        self,
        *,
        settings: Settings,
        storage: Storage,
        generator: StoryGenerator,
        judge: SubmissionJudge,
        user_id: str,
        cache_key: str = STORY_CACHE_KEY,
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._generator = generator
        self._judge = judge
        self._cache_key = cache_key
        self._user_id = user_id
        self.tracker = ProgressTracker(storage, user_id, settings.premium_threshold)

    def build_context(
        self,
        mood: str | None = None,
        count: int = 1,
        experiences: Sequence[UserExperience] | None = None,
    ) -> GenerationContext:
        """Context for the next refresh; `experiences` defaults to the user's stored ones."""
        progress = self.tracker.progress
        if experiences is None:
            experiences = [exp.to_experience() for exp in self._storage.list_experiences(self._user_id)]
        return GenerationContext(
            mood=(mood or "").strip() or progress.mood or DEFAULT_MOOD,
            user_experiences=list(experiences),
            user_level=progress.level,
            completed_game_ids=set(progress.completed_games),
            recent_task_types=progress.last_task_types,
            requested_count=max(1, min(count, self._settings.max_batch)),
        )

    async def refresh(
        self,
        mood: str | None = None,
        count: int = 3,
        experiences: Sequence[UserExperience] | None = None,
    ) -> GenerationOutcome:
        context = self.build_context(mood, count, experiences)
        if mood and context.mood != self.tracker.progress.mood:
            self.tracker.update_mood(context.mood)

        outcome = await self._generator.generate_outcome(context)
        self._storage.save(self._cache_key, outcome.tasks)
        logger.info(
            "Feed refreshed with %d task(s) for mood %r (degraded=%s)",
            len(outcome.tasks), context.mood, outcome.degraded,
        )
        return outcome

    def cached(self) -> list[Any]:
        """Tasks from the last refresh, as stored."""
        return self._storage.load(self._cache_key)

    async def complete(self, task: TaskDescriptor, content: str) -> JudgingOutcome:
        submission = Submission(task_type=task.task_type, content=content, task_id=task.id)
        outcome = await self._judge.judge_outcome(submission, task)
        self.tracker.add_points(task.reward_points, capped_at=self._settings.reward_cap)
        self.tracker.record_completion(task.id, task.task_type)
        return outcome
