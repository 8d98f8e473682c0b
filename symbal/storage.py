"""JSON file storage.

All local state is stored in flat JSON files under a configurable base
directory. There is no database or ORM; reads and writes go through plain
helper methods that load and dump JSON.

Directory layout:

    {base}/
      cache/
        {key}.json            ← most recently generated task descriptors
      progress/
        {user_id}.json        ← UserProgress ledger for one user
      experiences/
        {user_id}.json        ← list of CustomExperience records, newest first
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from symbal.models import TaskDescriptor, UserExperience

logger = logging.getLogger(__name__)

STORY_CACHE_KEY = "cachedStories"
DEFAULT_MOOD = "creative inspiration"

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_.-]+")


class UserProgress(BaseModel):
    """Reward ledger for one user."""

    user_id: str
    xp: int = 0
    level: int = 1
    mood: str = DEFAULT_MOOD
    completed_games: list[str] = Field(default_factory=list)
    last_task_types: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CustomExperience(BaseModel):
    """A user-authored experience; only title, description and content feed generation."""

    id: str
    user_id: str
    title: str
    description: str = ""
    difficulty: Literal["Easy", "Medium", "Hard"] = "Medium"
    estimated_time: str = "5 min"
    is_public: bool = False
    plays: int = 0
    rating: float = 0.0
    content: Any = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_experience(self) -> UserExperience:
        return UserExperience(title=self.title, description=self.description, content=self.content)


EXPERIENCE_FIELDS = {"title", "description", "difficulty", "estimated_time", "is_public", "rating", "content"}


def _safe_name(name: str) -> str:
    return _UNSAFE_NAME_RE.sub("-", name).strip("-") or "default"


class Storage:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._cache_root = base_path / "cache"
        self._progress_root = base_path / "progress"
        self._experiences_root = base_path / "experiences"
        for root in (self._cache_root, self._progress_root, self._experiences_root):
            root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _cache_file(self, key: str) -> Path:
        return self._cache_root / f"{_safe_name(key)}.json"

    def _progress_file(self, user_id: str) -> Path:
        return self._progress_root / f"{_safe_name(user_id)}.json"

    def _experiences_file(self, user_id: str) -> Path:
        return self._experiences_root / f"{_safe_name(user_id)}.json"

    def _read_json(self, path: Path) -> Any:
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False))

    # ------------------------------------------------------------------
    # Story cache
    # ------------------------------------------------------------------

    def save(self, key: str, tasks: list[TaskDescriptor]) -> None:
        self._write_json(self._cache_file(key), [t.to_wire() for t in tasks])

    def load(self, key: str) -> list[Any]:
        """Return cached entries exactly as stored; no validation is applied.

        A missing or unreadable cache file reads as empty.
        """
        path = self._cache_file(key)
        if not path.exists():
            return []
        try:
            data = self._read_json(path)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load story cache %r: %s", key, e)
            return []
        return data if isinstance(data, list) else []

    def clear(self, key: str) -> None:
        self._cache_file(key).unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def get_progress(self, user_id: str) -> UserProgress:
        """Load a user's ledger, creating the default record on first access.

        An unreadable ledger is logged and replaced by a fresh default record.
        """
        path = self._progress_file(user_id)
        if path.exists():
            try:
                return UserProgress.model_validate_json(path.read_text())
            except (OSError, ValidationError) as e:
                logger.warning("Progress file for %r is unreadable, starting over: %s", user_id, e)
        progress = UserProgress(user_id=user_id)
        self.save_progress(progress)
        return progress

    def save_progress(self, progress: UserProgress) -> None:
        progress.updated_at = datetime.now(timezone.utc)
        self._progress_file(progress.user_id).write_text(progress.model_dump_json(indent=2))

    # ------------------------------------------------------------------
    # Custom experiences
    # ------------------------------------------------------------------

    def list_experiences(self, user_id: str) -> list[CustomExperience]:
        """Newest first. A missing or unreadable file reads as empty."""
        path = self._experiences_file(user_id)
        if not path.exists():
            return []
        try:
            data = self._read_json(path)
            experiences = [CustomExperience.model_validate(entry) for entry in data]
        except (OSError, TypeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to load experiences for %r: %s", user_id, e)
            return []
        return sorted(experiences, key=lambda exp: exp.created_at, reverse=True)

    def get_experience(self, user_id: str, experience_id: str) -> CustomExperience | None:
        for experience in self.list_experiences(user_id):
            if experience.id == experience_id:
                return experience
        return None

    def create_experience(self, user_id: str, title: str, description: str = "", **fields: Any) -> CustomExperience:
        experiences = self.list_experiences(user_id)
        taken = {exp.id for exp in experiences}
        base = _safe_name(title.lower())
        experience_id, n = base, 2
        while experience_id in taken:
            experience_id = f"{base}-{n}"
            n += 1

        allowed = {k: v for k, v in fields.items() if k in EXPERIENCE_FIELDS}
        experience = CustomExperience(
            id=experience_id, user_id=user_id, title=title, description=description, **allowed
        )
        self._save_experiences(user_id, [experience, *experiences])
        return experience

    def update_experience(
        self, user_id: str, experience_id: str, fields: dict[str, Any]
    ) -> CustomExperience | None:
        updates = {k: v for k, v in fields.items() if k in EXPERIENCE_FIELDS}
        return self._replace_experience(user_id, experience_id, updates)

    def delete_experience(self, user_id: str, experience_id: str) -> bool:
        experiences = self.list_experiences(user_id)
        kept = [exp for exp in experiences if exp.id != experience_id]
        if len(kept) == len(experiences):
            return False
        self._save_experiences(user_id, kept)
        return True

    def increment_plays(self, user_id: str, experience_id: str) -> CustomExperience | None:
        experience = self.get_experience(user_id, experience_id)
        if experience is None:
            return None
        return self._replace_experience(user_id, experience_id, {"plays": experience.plays + 1})

    def _replace_experience(
        self, user_id: str, experience_id: str, updates: dict[str, Any]
    ) -> CustomExperience | None:
        experiences = self.list_experiences(user_id)
        for i, experience in enumerate(experiences):
            if experience.id == experience_id:
                experiences[i] = CustomExperience.model_validate(
                    {**experience.model_dump(), **updates, "updated_at": datetime.now(timezone.utc)}
                )
                self._save_experiences(user_id, experiences)
                return experiences[i]
        return None

    def _save_experiences(self, user_id: str, experiences: list[CustomExperience]) -> None:
        self._write_json(
            self._experiences_file(user_id),
            [exp.model_dump(mode="json") for exp in experiences],
        )
