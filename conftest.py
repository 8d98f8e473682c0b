import random
from typing import Any

import pytest

from symbal.config import Settings
from symbal.storage import Storage


class StubRemote:
    """Remote stand-in: returns canned responses (or raises) in order, records calls."""

    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, dict]] = []

    async def invoke(self, endpoint_name: str, payload: dict) -> dict:
        self.calls.append((endpoint_name, payload))
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, BaseException):
            raise response
        return response


class StubLLM:
    """LLM stand-in: returns canned text (or raises) in order, records calls."""

    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: list[dict] = []

    async def __call__(self, stage: str, prompt: str, image=None) -> str:
        self.calls.append({"stage": stage, "prompt": prompt, "image": image})
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        functions_url="http://functions.test/functions",
        functions_key="anon",
        generation_delay=0,
        data_dir=tmp_path / "data",
    )


@pytest.fixture
def storage(settings) -> Storage:
    return Storage(settings.data_dir)


@pytest.fixture
def stub_remote():
    return StubRemote


@pytest.fixture
def stub_llm():
    return StubLLM
