"""Shared fixtures: a scripted upstream (GitHub + inference) and instant sleeps."""

import base64
import json

import httpx
import pytest

from config import Settings

GITHUB_API = "https://api.github.test"
INFERENCE_URL = "https://inference.test/v1/chat/completions"
INFERENCE_PATH = "/v1/chat/completions"


class RecordingSleep:
    """Stands in for asyncio.sleep; records requested delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeUpstream:
    """
    Routes requests by URL path to scripted responses.

    Each path holds a queue; the last entry repeats once the queue is down to
    one item. Exceptions in the queue are raised as transport errors. Paths
    with nothing scripted answer 404.
    """

    def __init__(self):
        self.routes: dict[str, list] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, *responses) -> None:
        self.routes.setdefault(path, []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(request.url.path)
        if not queue:
            return httpx.Response(404, json={"message": "Not Found"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    # Response builders

    @staticmethod
    def file(text: str) -> httpx.Response:
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        # GitHub wraps base64 content at 60 characters
        wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60))
        return httpx.Response(200, json={"type": "file", "encoding": "base64", "content": wrapped})

    @staticmethod
    def commits(*entries: tuple[str, str, str]) -> httpx.Response:
        return httpx.Response(200, json=[
            {"sha": f"{i:040x}", "commit": {"message": message, "author": {"name": author, "date": date}}}
            for i, (message, author, date) in enumerate(entries)
        ])

    @staticmethod
    def completion(content) -> httpx.Response:
        if not isinstance(content, str):
            content = json.dumps(content)
        return httpx.Response(200, json={"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        github_token="gh-test-token",
        inference_api_key="inference-test-key",
        github_api_url=GITHUB_API,
        inference_url=INFERENCE_URL,
        inference_model="test-model",
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
