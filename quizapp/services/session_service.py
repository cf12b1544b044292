"""
Quiz Session Service
Owns running quiz sessions: serialized mutations, countdown task and
attempt persistence
FILE: quizapp/services/session_service.py
"""
import asyncio
import logging
import time
import uuid
from collections import OrderedDict
from typing import Callable, Dict, Optional

from quizapp.core.config import Settings
from quizapp.core.errors import DocumentStoreError, NotFoundError, SubmissionError
from quizapp.db.document_store import DocumentStore, attempts_path
from quizapp.engine.session import QuizSession
from quizapp.models.attempt import Attempt
from quizapp.services.quiz_service import QuizService
from quizapp.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)


class QuizSessionRunner:
    """
    Single owner of one QuizSession

    Every mutation, including the countdown tick, runs under one asyncio
    lock, so a manual submit and an expiring timer cannot both produce an
    attempt. The countdown task is stopped on submission and on close().
    """

    def __init__(
        self,
        session_id: str,
        session: QuizSession,
        store: DocumentStore,
        attempts_collection: str,
        tick_interval: float = 1.0,
        max_retries: int = 3,
        initial_backoff: float = 0.5,
        on_stored: Optional[Callable[["QuizSessionRunner"], None]] = None
    ):
        self.session_id = session_id
        self.session = session
        self.store = store
        self.attempts_collection = attempts_collection
        self.tick_interval = tick_interval
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.on_stored = on_stored

        self.attempt: Optional[Attempt] = None
        self.last_error: Optional[str] = None
        self.last_activity = time.monotonic()

        self._lock = asyncio.Lock()
        self._timer_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def timer_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def idle_seconds(self) -> float:
        return time.monotonic() - self.last_activity

    # ==================== COUNTDOWN ====================

    def start_timer(self) -> None:
        """Start the countdown if the quiz is timed and time remains"""
        if self._closed or self.timer_running:
            return
        if not self.session.is_in_progress or not self.session.remaining_seconds:
            return
        self._timer_task = asyncio.create_task(
            self._countdown(),
            name=f"countdown-{self.session_id}"
        )
        logger.debug(f"⏱️ Countdown started for session {self.session_id}")

    def _stop_timer(self) -> None:
        task = self._timer_task
        self._timer_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _countdown(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            async with self._lock:
                if not self.session.is_in_progress:
                    return
                attempt = self.session.tick()
                if attempt is None:
                    continue
                try:
                    await self._persist(attempt)
                except SubmissionError as e:
                    # The session is open again; the user resubmits by hand
                    self.last_error = str(e)
                    logger.error(f"❌ Automatic submission failed for session {self.session_id}: {e}")
                except Exception as e:
                    self.last_error = "Automatic submission failed. Please submit again."
                    logger.error(
                        f"❌ Unexpected error in automatic submission for session {self.session_id}: {e}",
                        exc_info=True
                    )
                return

    # ==================== MUTATIONS ====================

    async def set_answer(self, index: int, value: str) -> None:
        async with self._lock:
            self.last_activity = time.monotonic()
            self.session.set_answer(index, value)

    async def advance(self, delta: int) -> int:
        async with self._lock:
            self.last_activity = time.monotonic()
            return self.session.advance(delta)

    async def submit(self, timed_out: bool = False) -> Optional[Attempt]:
        """
        Submit the session and store the attempt

        Returns:
            The stored attempt, or None if the session was already submitted

        Raises:
            SubmissionError: If the store write failed; the session is reopened
        """
        async with self._lock:
            self.last_activity = time.monotonic()
            attempt = self.session.submit(timed_out=timed_out)
            if attempt is None:
                return None
            self._stop_timer()
            return await self._persist(attempt)

    def _rollback(self) -> None:
        self.session.reopen()
        self.start_timer()

    async def _persist(self, attempt: Attempt) -> Attempt:
        document = attempt.to_document()
        try:
            attempt_id = await retry_with_backoff(
                lambda: self.store.add_document(self.attempts_collection, document),
                max_retries=self.max_retries,
                initial_backoff=self.initial_backoff
            )
        except DocumentStoreError as e:
            self._rollback()
            raise SubmissionError("Failed to submit quiz. Please try again.") from e
        except Exception:
            self._rollback()
            raise

        attempt.id = attempt_id
        self.attempt = attempt
        self.last_error = None
        logger.info(f"💾 Stored attempt {attempt_id} for session {self.session_id}")

        if self.on_stored is not None:
            self.on_stored(self)
        return attempt

    async def close(self) -> None:
        """Tear the session down and make sure no countdown keeps running"""
        self._closed = True
        task = self._timer_task
        self._stop_timer()
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info(f"🛑 Closed session {self.session_id}")


class QuizSessionManager:
    """
    Registry of sessions for one application instance

    Open sessions live until their attempt is stored, they are deleted, or
    they sit idle without a running countdown for longer than
    session_idle_timeout_seconds. Submitted sessions move to a bounded
    most-recent cache so repeated submits still report the stored attempt.
    """

    def __init__(
        self,
        store: DocumentStore,
        quiz_service: QuizService,
        settings: Settings
    ):
        self.store = store
        self.quiz_service = quiz_service
        self.settings = settings
        self._runners: Dict[str, QuizSessionRunner] = {}
        self._finished: "OrderedDict[str, QuizSessionRunner]" = OrderedDict()

    async def start_session(self, user_id: str, quiz_id: str) -> QuizSessionRunner:
        """
        Load a quiz and start taking it

        Raises:
            NotFoundError: If the quiz does not exist
            InvalidQuizError: If the quiz has no questions
        """
        await self.purge_idle()

        quiz = await self.quiz_service.get_quiz(user_id, quiz_id)
        session = QuizSession.start(
            quiz,
            user_id,
            count_ungraded=self.settings.count_open_ended_in_total
        )

        session_id = f"session_{uuid.uuid4().hex[:12]}"
        runner = QuizSessionRunner(
            session_id=session_id,
            session=session,
            store=self.store,
            attempts_collection=attempts_path(self.settings.app_id, user_id),
            tick_interval=self.settings.tick_interval_seconds,
            max_retries=self.settings.submission_max_retries,
            initial_backoff=self.settings.submission_initial_backoff_seconds,
            on_stored=self._on_stored
        )
        self._runners[session_id] = runner
        runner.start_timer()

        logger.info(f"✅ Started session {session_id} on quiz {quiz_id} for user {user_id}")
        return runner

    def _on_stored(self, runner: QuizSessionRunner) -> None:
        if self._runners.pop(runner.session_id, None) is None:
            return
        self._finished[runner.session_id] = runner
        while len(self._finished) > self.settings.finished_session_cache_size:
            self._finished.popitem(last=False)

    def get_runner(self, session_id: str, user_id: str) -> QuizSessionRunner:
        """
        Raises:
            NotFoundError: If no such session exists for this user
        """
        runner = self._runners.get(session_id) or self._finished.get(session_id)
        if runner is None or runner.session.user_id != user_id:
            raise NotFoundError(f"Session not found: {session_id}")
        return runner

    async def end_session(self, session_id: str, user_id: str) -> None:
        """Discard a session; an unsubmitted session leaves no attempt behind"""
        runner = self.get_runner(session_id, user_id)
        self._runners.pop(session_id, None)
        self._finished.pop(session_id, None)
        await runner.close()

    async def purge_idle(self) -> int:
        """
        Close open sessions idle for longer than the configured timeout

        Sessions with a running countdown are kept; they end on expiry.

        Returns:
            Number of sessions closed
        """
        timeout = self.settings.session_idle_timeout_seconds
        idle = [
            runner for runner in self._runners.values()
            if not runner.timer_running and runner.idle_seconds >= timeout
        ]
        for runner in idle:
            self._runners.pop(runner.session_id, None)
            await runner.close()
        if idle:
            logger.info(f"🧹 Closed {len(idle)} idle sessions")
        return len(idle)

    async def shutdown(self) -> None:
        runners = list(self._runners.values())
        self._runners.clear()
        self._finished.clear()
        for runner in runners:
            await runner.close()
        if runners:
            logger.info(f"🛑 Closed {len(runners)} open sessions")

    def __len__(self) -> int:
        return len(self._runners)
