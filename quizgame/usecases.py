from __future__ import annotations

import random
import uuid
from dataclasses import dataclass
from typing import Optional

from .schemas import Author, Question
from .services.repository import QuizRepository


class GetAuthorsUseCase:
    def __init__(self, repository: QuizRepository):
        self.repository = repository

    async def execute(self) -> list[Author]:
        return await self.repository.fetch_authors()


class GetQuizQuestionsUseCase:
    """Questions for one author, in a fresh random order on every call."""

    def __init__(self, repository: QuizRepository, rng: Optional[random.Random] = None):
        self.repository = repository
        self.rng = rng or random.Random()

    async def execute(self, author_id: uuid.UUID) -> list[Question]:
        questions = list(await self.repository.fetch_questions(author_id))
        self.rng.shuffle(questions)
        return questions


class GenerateQuestionsUseCase:
    def __init__(self, repository: QuizRepository):
        self.repository = repository

    async def execute(self, topic: str, count: int) -> list[Question]:
        return await self.repository.generate_questions(topic, count)


@dataclass(frozen=True)
class QuizUseCases:
    get_authors: GetAuthorsUseCase
    get_questions: GetQuizQuestionsUseCase
    generate_questions: GenerateQuestionsUseCase

    @classmethod
    def from_repository(cls, repository: QuizRepository) -> "QuizUseCases":
        return cls(
            get_authors=GetAuthorsUseCase(repository),
            get_questions=GetQuizQuestionsUseCase(repository),
            generate_questions=GenerateQuestionsUseCase(repository),
        )
