"""Handlebars prompt rendering for the remote story and judge handlers."""

from collections.abc import Callable
from typing import Any

import pybars

from symbal.models import TASK_TYPES

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


STORY_PROMPT = """\
You are a creative storytelling AI for an interactive story app called Symbal. \
Generate one creative mini-task inspired by the user's current mood.

Current mood: "{{{mood}}}"
User level: {{level}}
{{#if experiences}}
User's custom experiences:
{{#each experiences}}
- "{{{title}}}": {{{description}}}
{{/each}}
{{/if}}
{{#if avoid_types}}
Recently completed task types (prefer a different one): {{avoid_types}}
{{/if}}

Requirements:
1. An engaging title (max 6 words)
2. A captivating narrative (2-3 sentences, max 200 characters)
3. A task type, one of: {{task_types}}
4. A reward between 5 and 10 points based on effort
5. An educational fact related to the theme, shown after the task
6. For drawing: a prompt starting with "Draw a" or "Draw an" naming something \
concrete, a palette of exactly 6 hex colors, and a time limit in minutes (5-30)
7. For writing: a prompt that asks for at least 400 characters, a word limit \
(10-400), and a time limit in minutes (5-30)

Respond in this exact JSON format:
{
  "title": "Story Title Here",
  "narrative": "Narrative that connects to the user's mood and creates intrigue.",
  "taskType": "drawing",
  "rewardPoints": 8,
  "postTaskFact": "🧠 Educational fact related to the theme.",
  "drawingPrompt": "Draw a lighthouse on a stormy night",
  "colorPalette": ["#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7", "#DDA0DD"],
  "writingPrompt": null,
  "wordLimit": null,
  "timeLimitMinutes": 15
}
"""

JUDGE_PROMPT = """\
You are a friendly, encouraging judge for a creative app called Symbal. \
Give playful, supportive feedback on the user's submission.

TASK DETAILS:
- Type: {{task_type}}
- Original Prompt: "{{{task_prompt}}}"
- Task Title: "{{{title}}}"
- Task Narrative: "{{{narrative}}}"

USER SUBMISSION:
{{#if has_image}}
Drawing: [attached image]
{{else}}
{{#if is_writing}}Text{{else}}Drawing data{{/if}}: "{{{content}}}"
{{/if}}

JUDGING GUIDELINES:
1. Be encouraging and positive; this is about creativity, not perfection
2. Use a playful, friendly tone with emojis
3. Connect your feedback to the original task and story
4. Score between 7 and 10
5. Highlight what the user did well
6. Offer gentle, constructive suggestions if appropriate

Respond in this exact JSON format:
{
  "score": 8,
  "feedback": "Your {{task_type}} beautifully captures the essence of the prompt! I love how you...",
  "encouragement": "🎨 What a wonderful creative expression!",
  "highlights": ["Creative interpretation", "Good use of the prompt"],
  "improvements": ["Optional gentle suggestion"]
}
"""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def build_story_context(request: dict[str, Any], variation: int = 0) -> dict[str, Any]:
    """Template variables for one story call.

    Calls after the first get a variation suffix on the mood so a batch does
    not come back as identical stories.
    """
    mood = request["mood"]
    if variation > 0:
        mood = f"{mood} (variation {variation + 1})"
    experiences = [
        {"title": e.get("title", ""), "description": e.get("description", "")}
        for e in request.get("userExperiences") or []
        if isinstance(e, dict)
    ]
    return {
        "mood": mood,
        "level": request.get("userLevel") or 1,
        "experiences": experiences,
        "avoid_types": ", ".join(request.get("lastTaskTypes") or []),
        "task_types": ", ".join(TASK_TYPES),
    }


def build_judge_context(
    submission: dict[str, Any],
    task: dict[str, Any],
    has_image: bool,
) -> dict[str, Any]:
    """Template variables for one judge call (wire-format dicts in)."""
    task_type = submission.get("taskType", "writing")
    prompt_key = "drawingPrompt" if task_type == "drawing" else "writingPrompt"
    return {
        "task_type": task_type,
        "task_prompt": task.get(prompt_key) or "",
        "title": task.get("title", ""),
        "narrative": task.get("narrative") or task.get("text", ""),
        "has_image": has_image,
        "is_writing": task_type == "writing",
        "content": "" if has_image else submission.get("content", ""),
    }
