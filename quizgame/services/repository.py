from __future__ import annotations

import uuid
from typing import Any, Optional, Protocol

import httpx
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from ..errors import GenerationError, RemoteFetchError
from ..schemas import Author, Question
from ..settings import settings
from .parse import parse_ai_questions

_authors = TypeAdapter(list[Author])
_questions = TypeAdapter(list[Question])


class QuizRepository(Protocol):
    async def fetch_authors(self) -> list[Author]: ...

    async def fetch_questions(self, author_id: uuid.UUID) -> list[Question]: ...

    async def generate_questions(self, topic: str, number_of_questions: int) -> list[Question]: ...


class SupabaseQuizRepository:
    """QuizRepository backed by Supabase REST plus the generate-quiz function."""

    def __init__(
        self,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        *,
        generate_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        base = (url or settings.SUPABASE_URL or "").rstrip("/")
        key = anon_key or settings.SUPABASE_ANON_KEY or ""
        self.rest = f"{base}/rest/v1"
        self.generate_url = generate_url or (
            f"{base}/functions/v1/generate-quiz" if url else settings.generate_quiz_url
        )
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _get(self, table: str, params: dict[str, str]) -> Any:
        try:
            async with self._client() as client:
                r = await client.get(f"{self.rest}/{table}", headers=self.headers, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"[repo] {table} request failed: {e}")
            raise RemoteFetchError(f"Could not reach the quiz store: {e}") from e
        if r.status_code >= 300:
            logger.warning(f"[repo] {table} fetch failed: {r.status_code} {r.text}")
            raise RemoteFetchError(f"Quiz store returned {r.status_code}")
        try:
            return r.json()
        except ValueError as e:
            raise RemoteFetchError(f"Quiz store returned invalid JSON for {table}") from e

    async def fetch_authors(self) -> list[Author]:
        rows = await self._get("authors", {"select": "id,name,emoji,created_at"})
        try:
            return _authors.validate_python(rows)
        except ValidationError as e:
            raise RemoteFetchError(f"Unexpected author data: {e.error_count()} errors") from e

    async def fetch_questions(self, author_id: uuid.UUID) -> list[Question]:
        params = {"select": "*,options(*)", "author_id": f"eq.{author_id}"}
        rows = await self._get("questions", params)
        try:
            return _questions.validate_python(rows)
        except ValidationError as e:
            raise RemoteFetchError(f"Unexpected question data: {e.error_count()} errors") from e

    async def generate_questions(self, topic: str, number_of_questions: int) -> list[Question]:
        body = {"topic": topic, "numberOfQuestions": number_of_questions}
        try:
            async with self._client() as client:
                r = await client.post(self.generate_url, headers=self.headers, json=body)
        except httpx.HTTPError as e:
            logger.warning(f"[repo] generate-quiz request failed: {e}")
            raise GenerationError(f"AI generation request failed: {e}") from e

        text = r.text
        logger.debug(f"[repo] generate-quiz raw response: {text[:500]}")
        if r.status_code >= 300:
            logger.warning(f"[repo] generate-quiz failed: {r.status_code} {text[:200]}")
            raise GenerationError(_error_message(r) or f"AI generation failed ({r.status_code})")
        if not text.strip():
            raise GenerationError("AI returned an empty response")
        return parse_ai_questions(text)


def _error_message(r: httpx.Response) -> Optional[str]:
    try:
        body = r.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None
