"""Progress ledger — SYM points, levels, completions and the premium gate.

The generator and judge never touch the ledger; the feed hands a task's
reward_points to add_points() once a submission has been judged.

  level     xp // 100 + 1
  premium   xp >= premium_threshold
"""

from __future__ import annotations

import logging

from symbal.models import RECENT_TASK_TYPES_LIMIT
from symbal.storage import Storage, UserProgress

logger = logging.getLogger(__name__)

XP_PER_LEVEL = 100


def level_for(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


class ProgressTracker:
    def __init__(self, storage: Storage, user_id: str, premium_threshold: int = 1000) -> None:
        self._storage = storage
        self._user_id = user_id
        self._premium_threshold = premium_threshold

    @property
    def progress(self) -> UserProgress:
        return self._storage.get_progress(self._user_id)

    @property
    def is_premium(self) -> bool:
        return self.progress.xp >= self._premium_threshold

    def add_points(self, amount: int, capped_at: int) -> UserProgress:
        """Credit at most `capped_at` points; negative amounts credit nothing."""
        awarded = max(0, min(amount, capped_at))
        progress = self.progress
        was_premium = progress.xp >= self._premium_threshold
        progress.xp += awarded
        progress.level = level_for(progress.xp)
        self._storage.save_progress(progress)
        if not was_premium and progress.xp >= self._premium_threshold:
            logger.info("User %s reached the premium threshold", self._user_id)
        return progress

    def record_completion(self, task_id: str, task_type: str) -> UserProgress:
        progress = self.progress
        if task_id not in progress.completed_games:
            progress.completed_games.append(task_id)
        progress.last_task_types = (progress.last_task_types + [task_type])[-RECENT_TASK_TYPES_LIMIT:]
        self._storage.save_progress(progress)
        return progress

    def update_mood(self, mood: str) -> UserProgress:
        progress = self.progress
        progress.mood = mood
        self._storage.save_progress(progress)
        return progress

    def add_achievement(self, achievement_id: str) -> UserProgress:
        progress = self.progress
        if achievement_id not in progress.achievements:
            progress.achievements.append(achievement_id)
            self._storage.save_progress(progress)
        return progress
