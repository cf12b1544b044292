import random
from datetime import datetime, timedelta, timezone

import pytest

from quizapp.core.errors import NotFoundError
from quizapp.db.document_store import attempts_path
from quizapp.models.attempt import Attempt
from quizapp.services.results_service import ResultsService, select_latest

BASE = datetime(2025, 12, 8, 10, 0, tzinfo=timezone.utc)


def attempt_at(minutes: int, score: int = 0) -> Attempt:
    return Attempt(
        quizId="quiz-1",
        userId="user-1",
        score=score,
        totalQuestions=2,
        submissionTimeUtc=BASE + timedelta(minutes=minutes)
    )


class TestSelectLatest:
    """Tests for picking the most recent attempt"""

    def test_empty(self):
        assert select_latest([]) is None

    def test_latest_regardless_of_order(self):
        attempts = [attempt_at(m, score=m) for m in (3, 10, 1, 7)]
        rng = random.Random(3)
        for _ in range(10):
            rng.shuffle(attempts)
            assert select_latest(attempts).score == 10

    def test_naive_timestamps_are_treated_as_utc(self):
        naive = Attempt(
            quizId="quiz-1",
            userId="user-1",
            score=1,
            totalQuestions=1,
            submissionTimeUtc=datetime(2025, 12, 8, 11, 0)
        )
        assert naive.submissionTimeUtc.tzinfo is timezone.utc
        assert select_latest([attempt_at(30), naive]) is naive


class TestResultsService:
    """Tests for reading attempts from the document store"""

    @pytest.mark.asyncio
    async def test_latest_attempt(self, store):
        path = attempts_path("test-app", "user-1")
        for minutes in (5, 20, 10):
            await store.add_document(path, attempt_at(minutes, score=minutes).to_document())

        latest = await ResultsService(store, "test-app").latest_attempt("user-1", "quiz-1")

        assert latest.score == 20
        assert latest.id is not None

    @pytest.mark.asyncio
    async def test_attempts_of_other_quizzes_are_ignored(self, store):
        path = attempts_path("test-app", "user-1")
        other = attempt_at(50, score=2).model_copy(update={"quizId": "quiz-2"})
        await store.add_document(path, attempt_at(1, score=1).to_document())
        await store.add_document(path, other.to_document())

        attempts = await ResultsService(store, "test-app").list_attempts("user-1", "quiz-1")

        assert [a.score for a in attempts] == [1]

    @pytest.mark.asyncio
    async def test_no_attempts(self, store):
        with pytest.raises(NotFoundError, match="No attempts found"):
            await ResultsService(store, "test-app").latest_attempt("user-1", "quiz-1")

    @pytest.mark.asyncio
    async def test_malformed_attempts_are_skipped(self, store):
        path = attempts_path("test-app", "user-1")
        await store.add_document(path, {"quizId": "quiz-1", "score": "lots"})
        await store.add_document(path, attempt_at(1, score=1).to_document())

        attempts = await ResultsService(store, "test-app").list_attempts("user-1", "quiz-1")

        assert len(attempts) == 1
