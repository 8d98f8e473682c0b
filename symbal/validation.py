"""Shared validation and clamping for remote payloads.

Both the client-side generator/judge and the remote service handlers run raw
LLM or remote output through these functions, so there is one authoritative
clamp. Out-of-range values are routine and corrected silently; nothing here
logs.
"""

from __future__ import annotations

import json
import math
import random
import re
from collections.abc import Sequence
from typing import Any

from symbal.fallback import (
    DEFAULT_TIME_LIMITS,
    DEFAULT_WORD_LIMIT,
    article_for,
    make_id,
    mood_writing_prompt,
    pick_task_type,
    random_image,
    random_noun,
    random_palette,
)
from symbal.models import (
    CHARACTER_MINIMUM_PHRASE,
    TASK_TYPES,
    DrawingTask,
    GenerationContext,
    Judgment,
    Submission,
    WritingTask,
)

REWARD_RANGE = (5, 10)
SCORE_RANGE = (7, 10)
TIME_LIMIT_RANGE = (5, 30)
WORD_LIMIT_RANGE = (10, 400)

DEFAULT_REWARD = 7
DEFAULT_SCORE = 8

DEFAULT_TITLE = "The Unexpected Journey"
DEFAULT_FACT = "🌟 Every challenge you overcome makes you stronger and more resilient!"
DEFAULT_ENCOURAGEMENT = "🎨 Amazing creative work!"
DEFAULT_HIGHLIGHTS = ["Creative expression"]

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_DRAW_PREFIX_RE = re.compile(
    r"^\s*(?:draw(?:ing\s+of)?|sketch(?:ing)?(?:\s+of)?)\b[\s:,-]*", re.IGNORECASE
)
_ARTICLE_RE = re.compile(r"^(?:an?|the)(?:\s+|$)", re.IGNORECASE)

_json_decoder = json.JSONDecoder()


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------

def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(round(value))
    return None


def clamp_int(value: Any, low: int, high: int, default: int) -> int:
    """Coerce value to an int in [low, high], using default when non-numeric."""
    number = _as_int(value)
    if number is None:
        number = default
    return max(low, min(high, number))


def clamp_reward(value: Any) -> int:
    return clamp_int(value, *REWARD_RANGE, DEFAULT_REWARD)


def clamp_score(value: Any) -> int:
    return clamp_int(value, *SCORE_RANGE, DEFAULT_SCORE)


def clamp_time_limit(value: Any, default: int) -> int:
    return clamp_int(value, *TIME_LIMIT_RANGE, default)


def clamp_word_limit(value: Any) -> int:
    return clamp_int(value, *WORD_LIMIT_RANGE, DEFAULT_WORD_LIMIT)


# ---------------------------------------------------------------------------
# Strings and lists
# ---------------------------------------------------------------------------

def _text(value: Any, limit: int, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()[:limit]
    return default[:limit]


def _string_list(value: Any, limit: int) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()][:limit]


def normalize_drawing_prompt(prompt: Any, rng: random.Random) -> str:
    """Rewrite a prompt so it reads "draw a ..." / "draw an ...".

    "a red car" -> "draw a red car", "CAR" -> "draw a car",
    "Draw an owl" -> "draw an owl", "Drawing of a cat" -> "draw a cat".
    """
    body = prompt.strip() if isinstance(prompt, str) else ""
    body = _DRAW_PREFIX_RE.sub("", body)
    body = _ARTICLE_RE.sub("", body).strip()
    if not body:
        body = random_noun(rng)
    elif body.isupper():
        body = body.lower()
    return f"draw {article_for(body)} {body}"


def ensure_character_minimum(prompt: Any, mood: str) -> str:
    """Make sure a writing prompt mentions the 400 character minimum, once."""
    text = prompt.strip() if isinstance(prompt, str) else ""
    if not text:
        text = mood_writing_prompt(mood)
    if CHARACTER_MINIMUM_PHRASE in text.lower():
        return text
    return f"{text} Write at least {CHARACTER_MINIMUM_PHRASE}."


def normalize_palette(value: Any, rng: random.Random) -> list[str]:
    """Keep a well-formed 6-colour palette, otherwise pick one from the pool."""
    if (
        isinstance(value, list)
        and len(value) == 6
        and all(isinstance(c, str) and _HEX_COLOR_RE.match(c) for c in value)
    ):
        return list(value)
    return random_palette(rng)


def resolve_task_type(value: Any, recent: Sequence[str], rng: random.Random) -> str:
    """Accept a proposed task type unless it is invalid or needlessly repeated."""
    alternatives = [t for t in TASK_TYPES if t not in recent]
    if value in TASK_TYPES and (value not in recent or not alternatives):
        return value
    return pick_task_type(recent, rng)


# ---------------------------------------------------------------------------
# JSON extraction
# ---------------------------------------------------------------------------

def extract_json_object(text: str) -> dict[str, Any]:
    """Return the first top-level JSON object embedded in free text.

    LLM output often wraps the object in prose or markdown fences.
    """
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = _json_decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(obj, dict):
            return obj
        start = text.find("{", start + 1)
    raise ValueError("No JSON object found in response text")


# ---------------------------------------------------------------------------
# Descriptor / judgment validation
# ---------------------------------------------------------------------------

def _first(raw: dict[str, Any], *keys: str) -> Any:
    """Value of the first present key; older payloads use different names."""
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def validate_task(
    raw: dict[str, Any],
    context: GenerationContext,
    rng: random.Random,
    index: int = 0,
) -> DrawingTask | WritingTask:
    """Turn one pre-validation story payload into a TaskDescriptor.

    Always assigns a fresh id and stock image; clamps every numeric field and
    normalizes the type-specific prompt.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Story payload must be an object, got {type(raw).__name__}")

    mood = context.mood
    task_type = resolve_task_type(
        _first(raw, "taskType", "task_type", "gameType"),
        context.recent_task_types,
        rng,
    )
    common = dict(
        id=make_id("ai", rng, index),
        title=_text(raw.get("title"), 50, DEFAULT_TITLE),
        narrative=_text(
            _first(raw, "narrative", "text"), 200,
            f'Your mood of "{mood}" opens new possibilities.',
        ),
        reward_points=clamp_reward(_first(raw, "rewardPoints", "reward_points", "xpReward")),
        post_task_fact=_text(_first(raw, "postTaskFact", "post_task_fact", "postGameFact"), 300, DEFAULT_FACT),
        image_url=random_image(rng),
        time_limit_minutes=clamp_time_limit(
            _first(raw, "timeLimitMinutes", "time_limit_minutes", "timeLimit"),
            DEFAULT_TIME_LIMITS[task_type],
        ),
    )

    if task_type == "drawing":
        return DrawingTask(
            **common,
            drawing_prompt=normalize_drawing_prompt(_first(raw, "drawingPrompt", "drawing_prompt"), rng),
            color_palette=normalize_palette(_first(raw, "colorPalette", "color_palette"), rng),
        )

    return WritingTask(
        **common,
        writing_prompt=ensure_character_minimum(_first(raw, "writingPrompt", "writing_prompt"), mood),
        word_limit=clamp_word_limit(_first(raw, "wordLimit", "word_limit")),
    )


def validate_judgment(raw: dict[str, Any], submission: Submission) -> Judgment:
    """Turn a pre-validation judgment payload into a Judgment."""
    if not isinstance(raw, dict):
        raise ValueError(f"Judgment payload must be an object, got {type(raw).__name__}")

    highlights = _string_list(raw.get("highlights"), 5) or list(DEFAULT_HIGHLIGHTS)
    improvements = _string_list(raw.get("improvements"), 3) if isinstance(raw.get("improvements"), list) else None

    return Judgment(
        score=clamp_score(raw.get("score")),
        feedback=_text(
            raw.get("feedback"), 500,
            f"Your {submission.task_type} shows wonderful creativity!",
        ),
        encouragement=_text(raw.get("encouragement"), 200, DEFAULT_ENCOURAGEMENT),
        highlights=highlights,
        improvements=improvements,
    )
