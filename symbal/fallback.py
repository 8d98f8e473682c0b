"""Local fallback synthesis.

Used whenever the remote generation or judging call fails or returns an
invalid shape. Everything here is a pure function of its arguments and the
injected random source; the tables are read-only.

Themes are picked by scanning the mood for a keyword:
  hope       "Light & Inspiration"
  adventure  "Journey Into the Unknown"  (default)
  mystery    "Secrets Unveiled"
  courage    "Brave Heart Rising"
"""

from __future__ import annotations

import random
import re
import time
from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType

from symbal.models import (
    TASK_TYPES,
    DrawingTask,
    Judgment,
    Submission,
    WritingTask,
)

DEFAULT_THEME = "adventure"


@dataclass(frozen=True)
class Theme:
    title: str
    narrative: str  # formatted with {mood}
    fact: str


THEMES = MappingProxyType({
    "hope": Theme(
        title="Light & Inspiration",
        narrative='Your mood of "{mood}" illuminates a path forward. Capture the light you see.',
        fact="🌟 Optimistic thinking can increase lifespan by 11-15%. Your positive mindset is literally life-changing!",
    ),
    "adventure": Theme(
        title="Journey Into the Unknown",
        narrative='Your mood of "{mood}" sparks an epic journey. Where will it take you?',
        fact="🗺️ Adventure activities boost creativity by 50%. Embrace the unknown!",
    ),
    "mystery": Theme(
        title="Secrets Unveiled",
        narrative='Your mood of "{mood}" reveals hidden mysteries waiting to be explored.',
        fact="🔍 Curiosity activates the brain's reward system, making learning more enjoyable!",
    ),
    "courage": Theme(
        title="Brave Heart Rising",
        narrative='Your mood of "{mood}" demands courage to proceed. Show what bravery looks like.',
        fact="💪 Facing fears actually rewires your brain to be more resilient!",
    ),
})

COLOR_PALETTES: tuple[tuple[str, ...], ...] = (
    ("#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7", "#DDA0DD"),
    ("#FF9F43", "#10AC84", "#5F27CD", "#00D2D3", "#FF3838", "#FF9FF3"),
    ("#54A0FF", "#5F27CD", "#00D2D3", "#FF9F43", "#10AC84", "#FF3838"),
    ("#A55EEA", "#26DE81", "#FD79A8", "#FDCB6E", "#6C5CE7", "#74B9FF"),
    ("#FF7675", "#74B9FF", "#A29BFE", "#FD79A8", "#FDCB6E", "#00B894"),
)

STOCK_IMAGES: tuple[str, ...] = (
    "https://images.pexels.com/photos/1181263/pexels-photo-1181263.jpeg",
    "https://images.pexels.com/photos/1181244/pexels-photo-1181244.jpeg",
    "https://images.pexels.com/photos/1181248/pexels-photo-1181248.jpeg",
    "https://images.pexels.com/photos/1181280/pexels-photo-1181280.jpeg",
    "https://images.pexels.com/photos/1181271/pexels-photo-1181271.jpeg",
    "https://images.pexels.com/photos/1181675/pexels-photo-1181675.jpeg",
    "https://images.pexels.com/photos/1181686/pexels-photo-1181686.jpeg",
    "https://images.pexels.com/photos/1181695/pexels-photo-1181695.jpeg",
    "https://images.pexels.com/photos/1181723/pexels-photo-1181723.jpeg",
    "https://images.pexels.com/photos/1181319/pexels-photo-1181319.jpeg",
)

CONCRETE_NOUNS: tuple[str, ...] = (
    "lighthouse", "hot air balloon", "owl", "treehouse", "sailboat",
    "umbrella", "dragon", "bicycle", "castle", "octopus",
    "rocket", "teapot", "apple tree", "kite", "robot",
)

CREATIVE_FACTS = MappingProxyType({
    "drawing": (
        "🎨 Drawing activates both hemispheres of your brain, enhancing creativity and problem-solving!",
        "🖌️ Art therapy has been shown to reduce stress and anxiety by up to 45%!",
        "🌈 Using colors in art can influence mood and emotional well-being!",
        "✏️ Regular drawing practice improves hand-eye coordination and fine motor skills!",
    ),
    "writing": (
        "✍️ Writing regularly improves cognitive function and emotional processing!",
        "📝 Expressive writing can boost immune system function and reduce stress!",
        "📚 Creative writing enhances empathy by helping you understand different perspectives!",
        "🧠 Writing by hand activates areas of the brain associated with learning and memory!",
    ),
})

ENCOURAGEMENTS: tuple[str, ...] = (
    "What a wonderful creative expression! 🎨",
    "Your imagination really shines through! ✨",
    "I love the creativity you've shown here! 💫",
    "This is such a unique take on the prompt! 🌟",
    "Your artistic spirit is truly inspiring! 🎭",
)

FEEDBACK_TEMPLATES = MappingProxyType({
    "drawing": (
        "Your drawing captures the essence of the prompt beautifully. "
        "The colors and composition work well together!"
    ),
    "writing": (
        "Your writing shows great creativity and emotional depth. "
        "The way you've interpreted the prompt is fascinating!"
    ),
})

FALLBACK_HIGHLIGHTS: tuple[str, ...] = (
    "Creative interpretation",
    "Good use of the prompt",
    "Unique artistic voice",
)

DEFAULT_TIME_LIMITS = MappingProxyType({"drawing": 15, "writing": 12})
DEFAULT_WORD_LIMIT = 120

_SUFFIX_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


# ---------------------------------------------------------------------------
# Small selectors shared with validation
# ---------------------------------------------------------------------------

def select_theme(mood: str) -> Theme:
    """Return the theme named by the first recognised word of the mood."""
    for word in re.split(r"\W+", mood.lower()):
        if word in THEMES:
            return THEMES[word]
    return THEMES[DEFAULT_THEME]


def pick_task_type(recent: Sequence[str], rng: random.Random) -> str:
    """Pick a task type, avoiding recent ones whenever an alternative exists."""
    available = [t for t in TASK_TYPES if t not in recent]
    return rng.choice(available or list(TASK_TYPES))


def random_palette(rng: random.Random) -> list[str]:
    return list(rng.choice(COLOR_PALETTES))


def random_image(rng: random.Random) -> str:
    return rng.choice(STOCK_IMAGES)


def random_noun(rng: random.Random) -> str:
    return rng.choice(CONCRETE_NOUNS)


def article_for(word: str) -> str:
    return "an" if word[:1].lower() in "aeiou" else "a"


def make_id(prefix: str, rng: random.Random, index: int | None = None) -> str:
    """Timestamp plus random suffix, e.g. ``ai-1718000000000-0-k3j9x2m1q``."""
    suffix = "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(9))
    parts = [prefix, str(int(time.time() * 1000))]
    if index is not None:
        parts.append(str(index))
    parts.append(suffix)
    return "-".join(parts)


def mood_writing_prompt(mood: str) -> str:
    return f'Write a short piece about what "{mood}" means to you right now.'


# ---------------------------------------------------------------------------
# Synthesizers
# ---------------------------------------------------------------------------

def fallback_task(
    mood: str,
    recent_task_types: Sequence[str],
    rng: random.Random,
) -> DrawingTask | WritingTask:
    """Synthesize a single task descriptor without any remote call."""
    theme = select_theme(mood)
    task_type = pick_task_type(recent_task_types, rng)
    common = dict(
        id=make_id("fallback", rng),
        title=theme.title,
        narrative=theme.narrative.format(mood=mood)[:200],
        reward_points=rng.randint(5, 10),
        post_task_fact=theme.fact,
        image_url=random_image(rng),
        time_limit_minutes=DEFAULT_TIME_LIMITS[task_type],
    )

    if task_type == "drawing":
        noun = random_noun(rng)
        return DrawingTask(
            **common,
            drawing_prompt=f"draw {article_for(noun)} {noun}",
            color_palette=random_palette(rng),
        )

    return WritingTask(
        **common,
        writing_prompt=f"{mood_writing_prompt(mood)} Write at least 400 characters.",
        word_limit=DEFAULT_WORD_LIMIT,
    )


def fallback_judgment(submission: Submission, rng: random.Random) -> Judgment:
    """Synthesize an encouraging judgment without any remote call."""
    return Judgment(
        score=rng.choice((7, 8, 9)),
        feedback=FEEDBACK_TEMPLATES[submission.task_type],
        encouragement=rng.choice(ENCOURAGEMENTS),
        highlights=list(FALLBACK_HIGHLIGHTS),
    )
