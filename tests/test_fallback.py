"""Tests for symbal.fallback — theme table, type avoidance, synthesized results."""

import random

import pytest

from symbal.fallback import (
    COLOR_PALETTES,
    ENCOURAGEMENTS,
    FALLBACK_HIGHLIGHTS,
    FEEDBACK_TEMPLATES,
    THEMES,
    fallback_judgment,
    fallback_task,
    make_id,
    pick_task_type,
    select_theme,
)
from symbal.models import DrawingTask, Submission, WritingTask


class TestSelectTheme:
    @pytest.mark.parametrize("mood,key", [
        ("hope", "hope"),
        ("hope courage light", "hope"),
        ("courage and hope", "courage"),
        ("A Deep MYSTERY", "mystery"),
        ("sunny afternoon", "adventure"),
        ("", "adventure"),
        ("hope, always", "hope"),
    ])
    def test_first_recognised_word_wins(self, mood: str, key: str) -> None:
        assert select_theme(mood) is THEMES[key]

    def test_hope_title(self) -> None:
        assert select_theme("hope").title == "Light & Inspiration"

    def test_substring_does_not_match(self) -> None:
        assert select_theme("hopeless") is THEMES["adventure"]


class TestPickTaskType:
    def test_avoids_recent(self) -> None:
        rng = random.Random(0)
        assert {pick_task_type(["drawing"], rng) for _ in range(50)} == {"writing"}
        assert {pick_task_type(["writing", "writing"], rng) for _ in range(50)} == {"drawing"}

    def test_all_recent_picks_from_all(self) -> None:
        rng = random.Random(0)
        picks = {pick_task_type(["drawing", "writing"], rng) for _ in range(100)}
        assert picks == {"drawing", "writing"}

    def test_nothing_recent_picks_from_all(self) -> None:
        rng = random.Random(0)
        assert {pick_task_type([], rng) for _ in range(100)} == {"drawing", "writing"}


class TestFallbackTask:
    def test_theme_fields(self, rng: random.Random) -> None:
        task = fallback_task("hope courage light", [], rng)
        assert task.title == "Light & Inspiration"
        assert "hope courage light" in task.narrative
        assert task.post_task_fact == THEMES["hope"].fact
        assert task.id.startswith("fallback-")
        assert 5 <= task.reward_points <= 10

    def test_drawing_variant(self) -> None:
        task = fallback_task("mystery", ["writing"], random.Random(7))
        assert isinstance(task, DrawingTask)
        assert task.drawing_prompt.startswith(("draw a ", "draw an "))
        assert tuple(task.color_palette) in COLOR_PALETTES

    def test_writing_variant(self) -> None:
        task = fallback_task("quiet rain", ["drawing"], random.Random(7))
        assert isinstance(task, WritingTask)
        assert "quiet rain" in task.writing_prompt
        assert task.writing_prompt.count("400 characters") == 1

    def test_rewards_cover_range(self) -> None:
        rng = random.Random(3)
        rewards = {fallback_task("x", [], rng).reward_points for _ in range(300)}
        assert rewards == set(range(5, 11))

    def test_deterministic_under_seed(self) -> None:
        a = fallback_task("hope", [], random.Random(99))
        b = fallback_task("hope", [], random.Random(99))
        assert a.model_dump(exclude={"id"}) == b.model_dump(exclude={"id"})

    def test_long_mood_fits_narrative_limit(self, rng: random.Random) -> None:
        task = fallback_task("hope " * 100, [], rng)
        assert len(task.narrative) <= 200


class TestFallbackJudgment:
    def test_writing(self, rng: random.Random) -> None:
        sub = Submission(task_type="writing", content="...", task_id="t")
        j = fallback_judgment(sub, rng)
        assert j.score in (7, 8, 9)
        assert j.feedback == FEEDBACK_TEMPLATES["writing"]
        assert j.encouragement in ENCOURAGEMENTS
        assert j.highlights == list(FALLBACK_HIGHLIGHTS)

    def test_drawing_feedback_template(self, rng: random.Random) -> None:
        sub = Submission(task_type="drawing", content="<svg/>", task_id="t")
        assert fallback_judgment(sub, rng).feedback == FEEDBACK_TEMPLATES["drawing"]

    def test_scores_cover_seven_to_nine(self) -> None:
        rng = random.Random(5)
        sub = Submission(task_type="writing", content="x", task_id="t")
        assert {fallback_judgment(sub, rng).score for _ in range(200)} == {7, 8, 9}


def test_make_id_shape(rng: random.Random) -> None:
    parts = make_id("ai", rng, 3).split("-")
    assert parts[0] == "ai"
    assert parts[1].isdigit()
    assert parts[2] == "3"
    assert len(parts[3]) == 9
