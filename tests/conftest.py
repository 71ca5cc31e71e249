from __future__ import annotations

import asyncio
import os
import uuid
from typing import Optional

import pytest

# Never let the suite reach OpenAI, whatever the developer's .env says.
os.environ["MOCK_MODE"] = "1"

from quizgame.errors import RemoteFetchError  # noqa: E402
from quizgame.schemas import Author, Option, Question  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


def make_question(content: str, correct: int = 0, n_options: int = 4,
                  author_id: Optional[uuid.UUID] = None) -> Question:
    qid = uuid.uuid4()
    return Question(
        id=qid,
        author_id=author_id,
        content=content,
        created_at="2026-01-05T00:00:00Z",
        options=[
            Option(id=uuid.uuid4(), question_id=qid, content=f"{content} / option {i}",
                   is_correct=(i == correct))
            for i in range(n_options)
        ],
    )


class FakeRepository:
    """In-memory QuizRepository that records calls."""

    def __init__(self) -> None:
        self.authors: list[Author] = []
        self.questions: dict[uuid.UUID, list[Question]] = {}
        self.generated: list[Question] = []
        self.error: Optional[Exception] = None
        self.calls: list[tuple] = []

    async def fetch_authors(self) -> list[Author]:
        self.calls.append(("fetch_authors",))
        if self.error:
            raise self.error
        return list(self.authors)

    async def fetch_questions(self, author_id: uuid.UUID) -> list[Question]:
        self.calls.append(("fetch_questions", author_id))
        if self.error:
            raise self.error
        return list(self.questions.get(author_id, []))

    async def generate_questions(self, topic: str, number_of_questions: int) -> list[Question]:
        self.calls.append(("generate_questions", topic, number_of_questions))
        if self.error:
            raise self.error
        return list(self.generated)


class ManualTicker:
    """Replacement for asyncio.sleep that only returns when the test says so."""

    def __init__(self) -> None:
        self._waiters: list[asyncio.Future] = []

    async def sleep(self, _seconds: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        await fut

    @property
    def pending(self) -> int:
        return sum(1 for f in self._waiters if not f.done())

    async def settle(self) -> None:
        for _ in range(5):
            await asyncio.sleep(0)

    async def tick(self, n: int = 1) -> None:
        for _ in range(n):
            await self.settle()
            waiters, self._waiters = self._waiters, []
            for f in waiters:
                if not f.done():
                    f.set_result(None)
            await self.settle()


@pytest.fixture
def repo() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def cat_memes(repo: FakeRepository) -> Author:
    author = Author(id=uuid.uuid4(), name="Cat Memes", emoji="🐱", created_at="2026-01-05")
    repo.authors = [author]
    return author


@pytest.fixture
def failing_repo(repo: FakeRepository) -> FakeRepository:
    repo.error = RemoteFetchError("Quiz store returned 503")
    return repo
