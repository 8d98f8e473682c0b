"""Tests for the StoryFeed caller flow with stubbed remote calls."""

import pytest

from symbal.feed import StoryFeed
from symbal.generator import StoryGenerator
from symbal.judge import SubmissionJudge
from symbal.remote import RemoteError


def _story(task_type: str = "writing") -> dict:
    return {
        "title": "Rain", "narrative": "It rains.", "taskType": task_type, "rewardPoints": 9,
        "postTaskFact": "Fact.", "writingPrompt": "Write about rain.", "drawingPrompt": "a cloud",
    }


class Router:
    """Dispatches stub responses by endpoint name."""

    def __init__(self, generate, judge) -> None:
        self._responses = {"generate-story": generate, "judge-submission": judge}
        self.calls: list[tuple[str, dict]] = []

    async def invoke(self, endpoint_name: str, payload: dict) -> dict:
        self.calls.append((endpoint_name, payload))
        response = self._responses[endpoint_name]
        if isinstance(response, BaseException):
            raise response
        return response


def _feed(settings, storage, rng, remote) -> StoryFeed:
    return StoryFeed(
        settings=settings,
        storage=storage,
        generator=StoryGenerator(remote, rng),
        judge=SubmissionJudge(remote, rng),
        user_id="u1",
    )


@pytest.fixture
def remote() -> Router:
    return Router(
        {"success": True, "stories": [_story(), _story("drawing"), _story()]},
        {"success": True, "judgment": {"score": 10, "feedback": "Great!", "encouragement": "Wow"}},
    )


class TestBuildContext:
    def test_uses_ledger(self, settings, storage, rng, remote) -> None:
        feed = _feed(settings, storage, rng, remote)
        feed.tracker.record_completion("t1", "drawing")
        ctx = feed.build_context("hope", count=2)
        assert ctx.mood == "hope"
        assert ctx.completed_game_ids == {"t1"}
        assert ctx.recent_task_types == ["drawing"]
        assert ctx.requested_count == 2

    def test_empty_mood_uses_stored_mood(self, settings, storage, rng, remote) -> None:
        ctx = _feed(settings, storage, rng, remote).build_context("  ")
        assert ctx.mood == "creative inspiration"

    def test_count_capped_by_max_batch(self, settings, storage, rng, remote) -> None:
        ctx = _feed(settings, storage, rng, remote).build_context("x", count=50)
        assert ctx.requested_count == settings.max_batch

    def test_stored_experiences_loaded(self, settings, storage, rng, remote) -> None:
        storage.create_experience("u1", "Paris Trip", "Spring in Paris")
        storage.create_experience("someone-else", "Not mine")
        ctx = _feed(settings, storage, rng, remote).build_context("hope")
        assert [exp.title for exp in ctx.user_experiences] == ["Paris Trip"]

    def test_explicit_experiences_override_store(self, settings, storage, rng, remote) -> None:
        storage.create_experience("u1", "Paris Trip")
        ctx = _feed(settings, storage, rng, remote).build_context("hope", experiences=[])
        assert ctx.user_experiences == []

    def test_corrupt_ledger_starts_fresh(self, settings, storage, rng, remote) -> None:
        (settings.data_dir / "progress" / "u1.json").write_text("{broken")
        ctx = _feed(settings, storage, rng, remote).build_context("")
        assert ctx.mood == "creative inspiration"
        assert ctx.user_level == 1


class TestRefresh:
    async def test_generates_and_caches(self, settings, storage, rng, remote) -> None:
        feed = _feed(settings, storage, rng, remote)
        outcome = await feed.refresh("rain", count=3)
        assert len(outcome.tasks) == 3
        assert [entry["id"] for entry in feed.cached()] == [t.id for t in outcome.tasks]
        assert feed.tracker.progress.mood == "rain"

    async def test_sends_stored_experiences(self, settings, storage, rng, remote) -> None:
        storage.create_experience("u1", "Paris Trip", "Spring in Paris")
        await _feed(settings, storage, rng, remote).refresh("rain", count=3)
        endpoint, payload = remote.calls[0]
        assert endpoint == "generate-story"
        assert payload["userExperiences"] == [{"title": "Paris Trip", "description": "Spring in Paris"}]

    async def test_offline_serves_single_fallback(self, settings, storage, rng) -> None:
        feed = _feed(settings, storage, rng, Router(RemoteError("offline"), RemoteError("offline")))
        outcome = await feed.refresh("hope", count=3)
        assert outcome.degraded
        assert len(outcome.tasks) == 1
        assert outcome.tasks[0].title == "Light & Inspiration"
        assert len(feed.cached()) == 1


class TestComplete:
    async def test_judges_and_awards(self, settings, storage, rng, remote) -> None:
        feed = _feed(settings, storage, rng, remote)
        (task, *_rest) = (await feed.refresh("rain", count=3)).tasks
        outcome = await feed.complete(task, "Rain on the roof. " * 30)

        assert outcome.judgment.score == 10
        progress = feed.tracker.progress
        assert progress.xp == task.reward_points
        assert progress.completed_games == [task.id]
        assert progress.last_task_types == [task.task_type]

        endpoint, payload = remote.calls[-1]
        assert endpoint == "judge-submission"
        assert payload["submission"]["taskId"] == task.id

    async def test_award_respects_reward_cap(self, settings, storage, rng, remote) -> None:
        capped = settings.model_copy(update={"reward_cap": 6})
        feed = _feed(capped, storage, rng, remote)
        (task, *_rest) = (await feed.refresh("rain", count=3)).tasks
        assert task.reward_points == 9
        await feed.complete(task, "x")
        assert feed.tracker.progress.xp == 6

    async def test_judging_offline_still_awards(self, settings, storage, rng) -> None:
        remote = Router({"success": True, "stories": [_story()]}, RemoteError("offline"))
        feed = _feed(settings, storage, rng, remote)
        (task,) = (await feed.refresh("rain", count=1)).tasks
        outcome = await feed.complete(task, "x")
        assert outcome.degraded
        assert outcome.judgment.score in (7, 8, 9)
        assert feed.tracker.progress.xp == task.reward_points
