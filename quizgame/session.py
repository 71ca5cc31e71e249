"""Quiz session controller.

A session walks one author's questions in order, one countdown per question,
and tallies a score. Every transition produces a new immutable
``SessionState``; the presentation layer subscribes to receive them and never
mutates the session directly. All methods are meant to run on a single
asyncio event loop.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Literal, Optional

from loguru import logger

from .errors import GenerationError, QuizError
from .schemas import AI_GENERATED_AUTHOR, Author, Option, Question
from .services.timer import Countdown, Sleep, TimerHandle
from .settings import settings
from .usecases import QuizUseCases

Phase = Literal["idle", "loading", "in_progress", "finished", "error"]
ErrorKind = Literal["fetch", "generation", "no_questions"]
Listener = Callable[["SessionState"], None]

NO_QUESTIONS = "no questions found"


@dataclass(frozen=True)
class SessionState:
    phase: Phase = "idle"
    author: Optional[Author] = None
    questions: tuple[Question, ...] = ()
    index: int = 0
    selection: Optional[Option] = None
    score: int = 0
    time_remaining: int = 0
    message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.phase != "in_progress" or not (0 <= self.index < self.total):
            return None
        return self.questions[self.index]


@dataclass(frozen=True)
class QuizResult:
    score: int
    total: int

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return 100.0 * self.score / self.total


class QuizSession:
    def __init__(
        self,
        use_cases: QuizUseCases,
        *,
        time_budget: Optional[int] = None,
        tick_seconds: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.use_cases = use_cases
        self.countdown = Countdown(
            budget=time_budget if time_budget is not None else settings.QUESTION_TIME_BUDGET,
            tick_seconds=tick_seconds if tick_seconds is not None else settings.TICK_SECONDS,
            sleep=sleep,
        )
        self.state = SessionState()
        self.authors: list[Author] = []
        self.authors_error: Optional[str] = None
        self._timer: Optional[TimerHandle] = None
        self._listeners: list[Listener] = []
        self._stop_epoch = 0

    # ---------- notification channel ----------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, state: SessionState) -> SessionState:
        self.state = state
        for listener in list(self._listeners):
            listener(state)
        return state

    # ---------- authors ----------
    async def load_authors(self) -> list[Author]:
        """Fetch the author list once; later calls reuse it."""
        if self.authors:
            return self.authors
        try:
            self.authors = await self.use_cases.get_authors.execute()
            self.authors_error = None
        except QuizError as e:
            logger.warning(f"[session] loading authors failed: {e}")
            self.authors_error = str(e)
        return self.authors

    # ---------- lifecycle ----------
    async def start(self, author: Author, questions: Optional[Iterable[Question]] = None) -> SessionState:
        stop_epoch = self._begin_loading(author)
        if questions is not None:
            return self._play(author, list(questions))
        try:
            loaded = await self.use_cases.get_questions.execute(author.id)
        except QuizError as e:
            if stop_epoch != self._stop_epoch:
                return self.state
            logger.warning(f"[session] loading questions for {author.name!r} failed: {e}")
            return self._fail(author, e)
        # stopped while the fetch was in flight: the host is gone, drop the result
        if stop_epoch != self._stop_epoch:
            logger.debug(f"[session] dropping questions for {author.name!r} after stop()")
            return self.state
        return self._play(author, loaded)

    async def start_generated(self, topic: str, count: Optional[int] = None) -> SessionState:
        """Ask the AI collaborator for questions on ``topic`` and play them."""
        stop_epoch = self._begin_loading(AI_GENERATED_AUTHOR)
        n = count if count is not None else settings.AI_QUESTION_COUNT
        try:
            questions = await self.use_cases.generate_questions.execute(topic, n)
        except QuizError as e:
            if stop_epoch != self._stop_epoch:
                return self.state
            logger.warning(f"[session] AI generation for {topic!r} failed: {e}")
            return self._fail(AI_GENERATED_AUTHOR, e)
        if stop_epoch != self._stop_epoch:
            return self.state
        return self._play(AI_GENERATED_AUTHOR, questions)

    def _begin_loading(self, author: Author) -> int:
        self._cancel_timer()
        self._set(SessionState(phase="loading", author=author))
        return self._stop_epoch

    def _fail(self, author: Author, e: QuizError) -> SessionState:
        self._cancel_timer()
        kind: ErrorKind = "generation" if isinstance(e, GenerationError) else "fetch"
        return self._set(SessionState(phase="error", author=author, message=str(e), error_kind=kind))

    def _play(self, author: Author, loaded: list[Question]) -> SessionState:
        # overlapping starts are not de-duplicated: whichever completes last owns the session
        self._cancel_timer()
        if not loaded:
            return self._set(SessionState(
                phase="error", author=author, message=NO_QUESTIONS, error_kind="no_questions",
            ))

        logger.info(f"[session] starting {author.name!r} with {len(loaded)} questions")
        self._set(SessionState(
            phase="in_progress",
            author=author,
            questions=tuple(loaded),
            time_remaining=self.countdown.budget,
        ))
        self._start_timer()
        return self.state

    def select_option(self, option: Option) -> SessionState:
        if self.state.phase != "in_progress":
            return self.state
        return self._set(replace(self.state, selection=option))

    def advance(self) -> SessionState:
        state = self.state
        if state.phase != "in_progress":
            return state
        self._cancel_timer()

        score = state.score
        if state.selection is not None and state.selection.is_correct:
            score += 1

        if state.index + 1 >= state.total:
            logger.info(f"[session] finished {score}/{state.total}")
            return self._set(replace(state, phase="finished", score=score, selection=None))

        self._set(replace(
            state,
            index=state.index + 1,
            selection=None,
            score=score,
            time_remaining=self.countdown.budget,
        ))
        self._start_timer()
        return self.state

    def stop(self) -> None:
        """Cancel the countdown and abandon any load still in flight."""
        self._stop_epoch += 1
        self._cancel_timer()

    def result(self) -> Optional[QuizResult]:
        if self.state.phase != "finished":
            return None
        return QuizResult(score=self.state.score, total=self.state.total)

    # ---------- timer ----------
    def _start_timer(self) -> None:
        self._cancel_timer()
        self._timer = self.countdown.start(self._on_tick, self._on_expire)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_tick(self, remaining: int) -> None:
        if self.state.phase == "in_progress":
            self._set(replace(self.state, time_remaining=remaining))

    def _on_expire(self) -> None:
        logger.debug(f"[session] time is up on question {self.state.index + 1}")
        self.advance()
