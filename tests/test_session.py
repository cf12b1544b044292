import random

import pytest

from quizapp.core.errors import InvalidQuizError, SessionClosedError
from quizapp.engine.session import QuizSession, SessionStatus
from quizapp.models.quiz import Quiz

from conftest import make_quiz


class TestStart:
    """Tests for starting a session"""

    def test_start_initializes_answers_and_pointer(self, quiz):
        session = QuizSession.start(quiz, "user-1")

        assert session.current_index == 0
        assert session.answers == {0: "", 1: "", 2: "", 3: ""}
        assert session.status is SessionStatus.IN_PROGRESS
        assert session.remaining_seconds is None
        assert not session.is_timed

    def test_start_timed_quiz_sets_countdown(self):
        session = QuizSession.start(make_quiz(time_limit_minutes=2), "user-1")
        assert session.remaining_seconds == 120
        assert session.is_timed

    def test_start_empty_quiz_fails(self):
        empty = Quiz(id="empty", title="Empty", questions=[])
        with pytest.raises(InvalidQuizError):
            QuizSession.start(empty, "user-1")

    def test_session_is_isolated_from_later_quiz_edits(self, quiz):
        session = QuizSession.start(quiz, "user-1")
        quiz.questions.pop()

        assert session.question_count == 4
        assert len(session.answers) == 4


class TestAnswersAndNavigation:
    """Tests for answer buffer and question pointer"""

    def test_set_answer_overwrites(self, quiz):
        session = QuizSession.start(quiz, "user-1")
        session.set_answer(0, "0")
        session.set_answer(0, "1")
        assert session.answers[0] == "1"

    def test_set_answer_accepts_values_outside_option_set(self, quiz):
        session = QuizSession.start(quiz, "user-1")
        session.set_answer(0, "banana")
        assert session.answers[0] == "banana"

    def test_set_answer_rejects_unknown_index(self, quiz):
        session = QuizSession.start(quiz, "user-1")
        with pytest.raises(IndexError):
            session.set_answer(4, "1")

    def test_advance_clamps_to_bounds(self, quiz):
        session = QuizSession.start(quiz, "user-1")

        assert session.advance(-1) == 0
        assert session.advance(1) == 1
        assert session.advance(10) == 3
        assert session.advance(1) == 3
        assert session.advance(-2) == 1

    def test_advance_never_leaves_range(self, quiz):
        session = QuizSession.start(quiz, "user-1")
        rng = random.Random(7)

        for _ in range(500):
            session.advance(rng.randint(-6, 6))
            assert 0 <= session.current_index <= session.question_count - 1

    def test_mutations_rejected_after_submit(self, quiz):
        session = QuizSession.start(quiz, "user-1")
        session.submit()

        with pytest.raises(SessionClosedError):
            session.set_answer(0, "1")
        with pytest.raises(SessionClosedError):
            session.advance(1)


class TestTickAndSubmit:
    """Tests for countdown and submission"""

    def test_full_countdown_submits_once(self, timed_quiz):
        session = QuizSession.start(timed_quiz, "user-1")
        session.set_answer(0, "1")

        attempts = [session.tick() for _ in range(60)]
        produced = [a for a in attempts if a is not None]

        assert session.remaining_seconds == 0
        assert session.status is SessionStatus.SUBMITTED
        assert len(produced) == 1
        assert attempts[-1] is produced[0]
        assert produced[0].timedOut is True
        assert produced[0].timeTakenSeconds == 60
        assert produced[0].score == 1

    def test_tick_after_submission_is_noop(self, timed_quiz):
        session = QuizSession.start(timed_quiz, "user-1")
        session.tick()
        session.submit()

        assert session.tick() is None
        assert session.remaining_seconds == 59

    def test_tick_on_untimed_quiz_is_noop(self, quiz):
        session = QuizSession.start(quiz, "user-1")
        assert session.tick() is None
        assert session.remaining_seconds is None
        assert session.is_in_progress

    def test_second_submit_produces_nothing(self, quiz):
        session = QuizSession.start(quiz, "user-1")

        first = session.submit()
        second = session.submit(timed_out=True)

        assert first is not None
        assert second is None
        assert session.timed_out is False

    def test_timer_expiry_then_manual_submit_yields_one_attempt(self):
        quiz = make_quiz(time_limit_minutes=1)
        session = QuizSession.start(quiz, "user-1")
        for _ in range(59):
            assert session.tick() is None

        produced = [session.tick(), session.submit()]
        assert sum(a is not None for a in produced) == 1

    def test_submit_builds_attempt(self, timed_quiz):
        session = QuizSession.start(timed_quiz, "user-7")
        session.set_answer(0, "1")
        session.set_answer(1, "2")
        session.set_answer(2, "True")
        session.set_answer(3, "Rust")
        for _ in range(15):
            session.tick()

        attempt = session.submit()

        assert attempt.quizId == "quiz-1"
        assert attempt.userId == "user-7"
        assert attempt.score == 3
        assert attempt.totalQuestions == 4
        assert attempt.timeTakenSeconds == 15
        assert attempt.timedOut is False
        assert attempt.answers == {"0": "1", "1": "2", "2": "True", "3": "Rust"}
        assert len(attempt.detailedResults) == 4
        assert attempt.submissionTimeUtc.tzinfo is not None

    def test_untimed_attempt_has_no_time_taken(self, quiz):
        attempt = QuizSession.start(quiz, "user-1").submit()
        assert attempt.timeTakenSeconds is None

    def test_reopen_allows_resubmission(self, quiz):
        session = QuizSession.start(quiz, "user-1")
        session.set_answer(0, "1")
        session.submit()

        session.reopen()
        assert session.is_in_progress
        assert session.answers[0] == "1"

        session.set_answer(1, "2")
        attempt = session.submit()
        assert attempt is not None
        assert attempt.score == 2

    def test_expired_session_stays_timed_out_after_reopen(self, timed_quiz):
        session = QuizSession.start(timed_quiz, "user-1")
        session.set_answer(0, "1")
        for _ in range(60):
            session.tick()

        session.reopen()

        assert session.is_in_progress
        assert session.time_expired
        assert session.timed_out is True
        with pytest.raises(SessionClosedError, match="time is up"):
            session.set_answer(0, "0")
        with pytest.raises(SessionClosedError, match="time is up"):
            session.advance(1)
        assert session.tick() is None

        attempt = session.submit()
        assert attempt.timedOut is True
        assert attempt.timeTakenSeconds == 60
        assert attempt.answers["0"] == "1"

    def test_reopen_before_expiry_clears_timed_out(self, timed_quiz):
        session = QuizSession.start(timed_quiz, "user-1")
        session.tick()
        session.submit()

        session.reopen()

        assert session.timed_out is False
        assert not session.time_expired
        session.set_answer(0, "1")
