"""
Quiz Session State Machine
Drives one quiz attempt from start to submission
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from quizapp.core.errors import InvalidQuizError, SessionClosedError
from quizapp.engine.scoring import as_text, evaluate
from quizapp.models.attempt import Attempt
from quizapp.models.quiz import Quiz

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class QuizSession:
    """
    Transient state of a quiz being taken

    The session is a plain state machine: it never sleeps, never talks to
    the store and is not thread-safe. Callers serialize access to it (see
    QuizSessionRunner) and decide what to do with the Attempt returned by
    submit() or by the final tick().

    States:
        in_progress -> submitted (terminal, except for reopen() after a
        failed store write)
    """

    def __init__(
        self,
        quiz: Quiz,
        user_id: str,
        count_ungraded: bool = True
    ):
        if not quiz.questions:
            raise InvalidQuizError(f"Quiz {quiz.id or '<draft>'} has no questions")

        # Private copy keeps the question sequence fixed for this session
        self._quiz = quiz.model_copy(deep=True)
        self.user_id = user_id
        self.count_ungraded = count_ungraded

        self._current_index = 0
        self._answers: Dict[int, str] = {
            index: "" for index in range(len(self._quiz.questions))
        }
        self._remaining_seconds: Optional[int] = self._quiz.time_limit_seconds
        self._status = SessionStatus.IN_PROGRESS
        self._timed_out = False

    @classmethod
    def start(
        cls,
        quiz: Quiz,
        user_id: str,
        count_ungraded: bool = True
    ) -> "QuizSession":
        session = cls(quiz, user_id, count_ungraded=count_ungraded)
        logger.info(
            f"🎬 Started session on quiz {quiz.id} for user {user_id} "
            f"({len(quiz.questions)} questions, "
            f"{'untimed' if session.remaining_seconds is None else f'{session.remaining_seconds}s'})"
        )
        return session

    # ==================== STATE ====================

    @property
    def quiz(self) -> Quiz:
        return self._quiz

    @property
    def question_count(self) -> int:
        return len(self._quiz.questions)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_question(self):
        return self._quiz.questions[self._current_index]

    @property
    def answers(self) -> Dict[int, str]:
        return dict(self._answers)

    @property
    def remaining_seconds(self) -> Optional[int]:
        return self._remaining_seconds

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    @property
    def is_timed(self) -> bool:
        return self._remaining_seconds is not None

    @property
    def is_in_progress(self) -> bool:
        return self._status is SessionStatus.IN_PROGRESS

    @property
    def time_expired(self) -> bool:
        return self._remaining_seconds is not None and self._remaining_seconds <= 0

    def _ensure_in_progress(self, action: str) -> None:
        if not self.is_in_progress:
            raise SessionClosedError(f"Cannot {action}: session already submitted")
        if self.time_expired:
            raise SessionClosedError(f"Cannot {action}: time is up")

    # ==================== TRANSITIONS ====================

    def set_answer(self, index: int, value: str) -> None:
        """Overwrite the answer for a question; values are not validated"""
        self._ensure_in_progress("change answers")
        if not 0 <= index < self.question_count:
            raise IndexError(f"Question index {index} out of range")
        self._answers[index] = value

    def advance(self, delta: int) -> int:
        """Move the question pointer by delta, clamped to the quiz bounds"""
        self._ensure_in_progress("navigate")
        target = self._current_index + delta
        self._current_index = max(0, min(target, self.question_count - 1))
        return self._current_index

    def tick(self) -> Optional[Attempt]:
        """
        Count down one second

        Returns:
            The Attempt when this tick expired the countdown, otherwise None
        """
        if not self.is_in_progress or self._remaining_seconds is None:
            return None
        if self._remaining_seconds <= 0:
            return None

        self._remaining_seconds -= 1
        if self._remaining_seconds == 0:
            logger.info(f"⏰ Time is up on quiz {self._quiz.id} for user {self.user_id}")
            return self.submit(timed_out=True)
        return None

    def submit(self, timed_out: bool = False) -> Optional[Attempt]:
        """
        Close the session and score it

        A second call after a successful transition returns None, so the
        countdown and a manual submit racing each other yield one Attempt.
        Once the countdown has run out the attempt is always timed out,
        including a resubmission after reopen().
        """
        if not self.is_in_progress:
            logger.debug(f"Ignoring duplicate submission for quiz {self._quiz.id}")
            return None

        timed_out = timed_out or self.time_expired
        self._status = SessionStatus.SUBMITTED
        self._timed_out = timed_out

        score, total_questions, detailed_results = evaluate(
            self._quiz,
            self._answers,
            count_ungraded=self.count_ungraded
        )

        time_taken = None
        if self._quiz.time_limit_seconds is not None:
            time_taken = self._quiz.time_limit_seconds - (self._remaining_seconds or 0)

        attempt = Attempt(
            quizId=self._quiz.id,
            userId=self.user_id,
            score=score,
            totalQuestions=total_questions,
            submissionTimeUtc=datetime.now(timezone.utc),
            timeTakenSeconds=time_taken,
            timedOut=timed_out,
            answers={str(index): as_text(value) for index, value in self._answers.items()},
            detailedResults=detailed_results
        )

        logger.info(
            f"✅ Submitted quiz {self._quiz.id} for user {self.user_id} - "
            f"Score: {score}/{total_questions}, Timed out: {timed_out}"
        )
        return attempt

    def reopen(self) -> None:
        """
        Roll back a submission whose attempt could not be stored

        An expired countdown stays expired: answers stay frozen and only
        submit() is allowed.
        """
        if self.is_in_progress:
            return
        self._status = SessionStatus.IN_PROGRESS
        self._timed_out = self.time_expired
        logger.warning(f"↩️ Reopened session on quiz {self._quiz.id} for user {self.user_id}")
