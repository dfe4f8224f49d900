"""
This file contains shared fixtures and configuration for the test suite.

Pytest will automatically discover and use the fixtures defined in this file.

The environment is pinned before any application module is imported: a
throwaway SQLite database, console-only logging, the offline embedding
provider and no LLM credentials, so relationship classification uses the
heuristic unless a test injects a fake client.
"""

import os
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="memory_timeline_tests_")

os.environ["MEMORY_TIMELINE_DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
)
os.environ["MEMORY_TIMELINE_LOG_TO_FILE"] = "false"
os.environ["EMBEDDING_PROVIDER"] = "local"
os.environ["EMBEDDING_MODEL"] = "all-MiniLM-L6-v2"
os.environ["OPENAI_API_KEY"] = ""
os.environ["OLLAMA_BASE_URL"] = ""
os.environ["AUTO_GENERATE_EMBEDDINGS"] = "true"
os.environ["RAG_ANALYSIS_DELAY_SECONDS"] = "0"
os.environ["EMBEDDING_BATCH_DELAY_SECONDS"] = "0"

from typing import Any  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy import select  # noqa: E402

from memory_timeline.db import AppAsyncSessionLocal, app_engine  # noqa: E402
from memory_timeline.errors import ProviderRequestError  # noqa: E402
from memory_timeline.models import Era, Event, EventTag, Tag  # noqa: E402
from memory_timeline.models.base import Base  # noqa: E402
from memory_timeline.services.embedding_providers import (  # noqa: E402
    EmbeddingConfig,
    EmbeddingProvider,
)
from memory_timeline.services.llm_interface import LLMInterface  # noqa: E402


@pytest_asyncio.fixture
async def clean_db():
    """
    Recreate every table before the test and release pooled connections after it.

    Connections are bound to the event loop that opened them, so the pool is
    disposed at teardown rather than shared between tests.
    """
    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await app_engine.dispose()


class Seeder:
    """Writes journal-owned rows (events, eras, tags) the engine only reads."""

    async def era(self, name: str, start_date: str = "2020-01-01", **kwargs) -> str:
        async with AppAsyncSessionLocal() as db:
            era = Era(name=name, start_date=start_date, **kwargs)
            db.add(era)
            await db.commit()
            return era.era_id

    async def event(
        self,
        title: str,
        start_date: str = "2024-01-01",
        category: str | None = "other",
        **kwargs,
    ) -> str:
        async with AppAsyncSessionLocal() as db:
            event = Event(title=title, start_date=start_date, category=category, **kwargs)
            db.add(event)
            await db.commit()
            return event.event_id

    async def tag(self, event_id: str, tag_name: str, confidence: float = 1.0):
        async with AppAsyncSessionLocal() as db:
            tag = (
                await db.execute(select(Tag).where(Tag.tag_name == tag_name))
            ).scalars().first()
            if tag is None:
                new_tag = Tag(tag_name=tag_name)
                db.add(new_tag)
                await db.flush()
                tag_id = new_tag.tag_id
            else:
                tag_id = tag.tag_id
            db.add(EventTag(event_id=event_id, tag_id=tag_id, confidence_score=confidence))
            await db.commit()

    async def delete_event(self, event_id: str):
        async with AppAsyncSessionLocal() as db:
            event = await db.get(Event, event_id)
            await db.delete(event)
            await db.commit()


@pytest_asyncio.fixture
async def seed(clean_db) -> Seeder:
    return Seeder()


class FakeLLMClient(LLMInterface):
    """
    Chat-completion stand-in.

    `reply` is either a fixed string, an exception to raise, or a callable
    taking the messages and returning one of those.
    """

    def __init__(self, reply: Any):
        self.reply = reply
        self.calls: list[list[dict[str, str]]] = []

    async def generate_chat_completion(
        self, messages, temperature=0.3, max_tokens=1000, **kwargs
    ) -> dict[str, Any]:
        self.calls.append(messages)
        reply = self.reply(messages) if callable(self.reply) else self.reply
        if isinstance(reply, Exception):
            raise reply
        return {"choices": [{"index": 0, "message": {"role": "assistant", "content": reply}}]}

    async def close(self):
        return


class FakeEmbeddingProvider(EmbeddingProvider):
    """
    Provider whose vectors are chosen by the test.

    The first key of `vectors` found in the text selects the vector; text
    matching a key in `failing` raises ProviderRequestError.
    """

    name = "fake"
    requires_api_key = False

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        dimension: int = 3,
        failing: tuple[str, ...] = (),
    ):
        super().__init__(EmbeddingConfig(provider="fake", model=f"fake-{dimension}"))
        self.vectors = vectors or {}
        self.failing = failing
        self.texts: list[str] = []

    @classmethod
    def dimension_for(cls, model: str) -> int:
        return int(model.rsplit("-", 1)[1])

    async def _embed(self, text: str) -> list[float]:
        self.texts.append(text)
        if any(key in text for key in self.failing):
            raise ProviderRequestError(f"fake provider refused: {text[:30]}")
        for key, vector in self.vectors.items():
            if key in text:
                return vector
        return [1.0] + [0.0] * (self.dimension - 1)


@pytest.fixture
def fake_llm_factory():
    return FakeLLMClient


@pytest.fixture
def fake_provider_factory():
    return FakeEmbeddingProvider
