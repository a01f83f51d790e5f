"""Pytest configuration and fixtures."""

import os
import tempfile
from typing import Callable, List, Sequence, Union

import pytest

# Set test environment variables before importing app modules
os.environ["STAXCHANGE_DATA_DIR"] = tempfile.mkdtemp()
os.environ["OPENROUTER_API_KEY"] = "test-openrouter-key"
os.environ["STAXCHANGE_FETCH_DELAY"] = "0"
os.environ["STAXCHANGE_BATCH_DELAY"] = "0"
os.environ["STAXCHANGE_UPLOAD_DELAY"] = "0"
os.environ["STAXCHANGE_REPO_INIT_DELAY"] = "0"
os.environ["STAXCHANGE_AI_RETRY_BACKOFF"] = "0"

from staxchange.ai.clients import BaseLLMClient, ProviderResult  # noqa: E402
from staxchange.conversion.models import Batch, SourceFile, TargetSpec  # noqa: E402


class FakeLLMClient(BaseLLMClient):
    """Replays canned replies; an Exception instance in the list is raised instead."""

    def __init__(self, replies: Sequence[Union[str, Exception]]):
        super().__init__()
        self.replies = list(replies)
        self.calls: List[dict] = []
        self.closed = False

    async def complete(self, messages, model=None, temperature=None, max_tokens=None):
        self.calls.append({"messages": messages, "model": model})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ProviderResult(output_text=reply, model=model or "fake-model")

    async def aclose(self):
        self.closed = True


@pytest.fixture
def target() -> TargetSpec:
    """Default conversion target."""
    return TargetSpec(language="python", framework="fastapi", database="postgresql")


@pytest.fixture
def make_batch() -> Callable[..., Batch]:
    """Build a batch from ``(path, content)`` pairs."""

    def _make(*pairs, index: int = 1) -> Batch:
        return Batch(index=index, files=tuple(SourceFile(path=path, content=content) for path, content in pairs))

    return _make


@pytest.fixture
def fake_llm() -> type:
    """The scripted LLM client class."""
    return FakeLLMClient
