"""Core domain models.

The generator, judge, remote service and storage all operate on these types.
Pydantic is used for validation and serialisation at every data boundary.
Python attributes are snake_case; the JSON wire format is camelCase.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

TaskType = Literal["drawing", "writing"]

TASK_TYPES: tuple[str, ...] = ("drawing", "writing")

# How many recent task types are remembered when biasing generation.
RECENT_TASK_TYPES_LIMIT = 5

CHARACTER_MINIMUM_PHRASE = "400 characters"

_DATA_URI_RE = re.compile(r"^data:(image/[\w.+-]+);base64,(.+)$", re.DOTALL)


class WireModel(BaseModel):
    """Base for every model that crosses the remote boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Generation input
# ---------------------------------------------------------------------------

class UserExperience(WireModel):
    """User-authored custom content, used only as generation flavour."""

    title: str
    description: str = ""
    content: Any = None


class GenerationContext(WireModel):
    mood: str
    user_experiences: list[UserExperience] = Field(default_factory=list)
    user_level: int = Field(1, ge=1)
    completed_game_ids: set[str] = Field(default_factory=set)
    recent_task_types: list[str] = Field(default_factory=list)  # most recent last
    requested_count: int = Field(1, ge=1)

    @field_validator("recent_task_types")
    @classmethod
    def _keep_most_recent(cls, v: list[str]) -> list[str]:
        return v[-RECENT_TASK_TYPES_LIMIT:]

    @classmethod
    def from_request(cls, body: dict[str, Any], max_count: int | None = None) -> GenerationContext:
        """Inverse of to_request(); `count` is capped at max_count if given."""
        count = body.get("count") or 1
        if max_count is not None:
            count = min(count, max_count)
        return cls(
            mood=body["mood"],
            user_experiences=body.get("userExperiences") or [],
            user_level=body.get("userLevel") or 1,
            completed_game_ids=set(body.get("completedGames") or []),
            recent_task_types=body.get("lastTaskTypes") or [],
            requested_count=count,
        )

    def to_request(self) -> dict[str, Any]:
        """Serialise to the remote generation request body."""
        body: dict[str, Any] = {"mood": self.mood}
        if self.user_experiences:
            body["userExperiences"] = [e.to_wire() for e in self.user_experiences]
        body["userLevel"] = self.user_level
        if self.completed_game_ids:
            body["completedGames"] = sorted(self.completed_game_ids)
        if self.recent_task_types:
            body["lastTaskTypes"] = list(self.recent_task_types)
        body["count"] = self.requested_count
        return body


# ---------------------------------------------------------------------------
# Task descriptors: a tagged union on task_type
# ---------------------------------------------------------------------------

class TaskBase(WireModel):
    id: str
    title: str = Field(max_length=50)
    narrative: str = Field(max_length=200)
    reward_points: int = Field(ge=5, le=10)
    post_task_fact: str = Field(max_length=300)
    image_url: str = ""
    time_limit_minutes: int = Field(ge=5, le=30)


class DrawingTask(TaskBase):
    task_type: Literal["drawing"] = "drawing"
    drawing_prompt: str = Field(pattern=r"^(?i:draw an? )")
    color_palette: list[str] = Field(min_length=6, max_length=6)

    @property
    def prompt(self) -> str:
        return self.drawing_prompt


class WritingTask(TaskBase):
    task_type: Literal["writing"] = "writing"
    writing_prompt: str
    word_limit: int = Field(ge=10, le=400)

    @field_validator("writing_prompt")
    @classmethod
    def _mentions_minimum(cls, v: str) -> str:
        if CHARACTER_MINIMUM_PHRASE not in v.lower():
            raise ValueError(f"writing prompt must mention {CHARACTER_MINIMUM_PHRASE!r}")
        return v

    @property
    def prompt(self) -> str:
        return self.writing_prompt


TaskDescriptor = Annotated[
    Union[DrawingTask, WritingTask], Field(discriminator="task_type")
]

_task_adapter: TypeAdapter[DrawingTask | WritingTask] = TypeAdapter(TaskDescriptor)


def parse_task(data: dict[str, Any]) -> DrawingTask | WritingTask:
    """Validate a dict (wire or Python field names) into the right variant."""
    return _task_adapter.validate_python(data)


# ---------------------------------------------------------------------------
# Submissions and judgments
# ---------------------------------------------------------------------------

class Submission(WireModel):
    task_type: TaskType
    content: str
    task_id: str
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def image_data(self) -> tuple[str, str] | None:
        """Return (mime_type, base64_data) if content is an embedded image."""
        match = _DATA_URI_RE.match(self.content)
        if match is None:
            return None
        return match.group(1), match.group(2)


class Judgment(WireModel):
    score: int = Field(ge=7, le=10)
    feedback: str = Field(min_length=1, max_length=500)
    encouragement: str = Field(min_length=1, max_length=200)
    highlights: list[str] = Field(default_factory=list, max_length=5)
    improvements: list[str] | None = Field(None, max_length=3)


# ---------------------------------------------------------------------------
# Outcomes: result plus the "degraded" flag
# ---------------------------------------------------------------------------

class GenerationOutcome(BaseModel):
    tasks: list[TaskDescriptor]
    degraded: bool = False
    error: str | None = None


class JudgingOutcome(BaseModel):
    judgment: Judgment
    degraded: bool = False
    error: str | None = None
