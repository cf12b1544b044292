import asyncio

import pytest

from quizapp.core.errors import NotFoundError, QuizValidationError
from quizapp.db.document_store import quizzes_path
from quizapp.models.quiz import QuizDraft
from quizapp.services.quiz_service import QuizService, validate_draft


def draft(**overrides) -> QuizDraft:
    data = {
        "title": "Capitals",
        "timeLimitMinutes": 3,
        "questions": [
            {
                "type": "mcq",
                "text": "Capital of France?",
                "options": [{"text": "Paris"}, {"text": "Rome"}],
                "correctAnswer": "0"
            },
            {"type": "open_ended", "text": "Name a capital you visited."}
        ]
    }
    data.update(overrides)
    return QuizDraft(**data)


class TestValidateDraft:
    """Tests for authoring validation"""

    def test_valid_draft_passes(self):
        validate_draft(draft())

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"title": "   "}, "title"),
            ({"questions": []}, "at least one question"),
            ({"timeLimitMinutes": 0}, "Time limit"),
            ({"questions": [{"type": "open_ended", "text": " "}]}, "Question text"),
            (
                {"questions": [{"type": "mcq", "text": "Q", "options": [], "correctAnswer": "0"}]},
                "at least one option"
            ),
            (
                {"questions": [{"type": "mcq", "text": "Q", "options": [{"text": "A"}], "correctAnswer": ""}]},
                "select a correct answer"
            ),
            (
                {"questions": [{"type": "mcq", "text": "Q", "options": [{"text": "A"}], "correctAnswer": "3"}]},
                "option index"
            ),
        ]
    )
    def test_invalid_drafts(self, overrides, message):
        with pytest.raises(QuizValidationError, match=message):
            validate_draft(draft(**overrides))


class TestQuizService:
    """Tests for quiz CRUD against the document store"""

    @pytest.mark.asyncio
    async def test_create_and_get(self, store):
        service = QuizService(store, "test-app")

        created = await service.create_quiz("user-1", draft())
        loaded = await service.get_quiz("user-1", created.id)

        assert loaded.id == created.id
        assert loaded.title == "Capitals"
        assert loaded.createdBy == "user-1"
        assert loaded.questions[0].correctAnswer == "0"
        stored = store.collections[quizzes_path("test-app", "user-1")][created.id]
        assert "id" not in stored

    @pytest.mark.asyncio
    async def test_quizzes_are_scoped_per_user(self, store):
        service = QuizService(store, "test-app")
        created = await service.create_quiz("user-1", draft())

        with pytest.raises(NotFoundError):
            await service.get_quiz("user-2", created.id)
        assert await service.list_quizzes("user-2") == []

    @pytest.mark.asyncio
    async def test_update_keeps_creation_metadata(self, store):
        service = QuizService(store, "test-app")
        created = await service.create_quiz("user-1", draft())

        updated = await service.update_quiz("user-1", created.id, draft(title="Capitals v2"))
        loaded = await service.get_quiz("user-1", created.id)

        assert updated.title == "Capitals v2"
        assert loaded.title == "Capitals v2"
        assert loaded.createdAt == created.createdAt

    @pytest.mark.asyncio
    async def test_update_missing_quiz(self, store):
        service = QuizService(store, "test-app")
        with pytest.raises(NotFoundError):
            await service.update_quiz("user-1", "missing", draft())

    @pytest.mark.asyncio
    async def test_delete(self, store):
        service = QuizService(store, "test-app")
        created = await service.create_quiz("user-1", draft())

        await service.delete_quiz("user-1", created.id)

        with pytest.raises(NotFoundError):
            await service.get_quiz("user-1", created.id)
        with pytest.raises(NotFoundError):
            await service.delete_quiz("user-1", created.id)

    @pytest.mark.asyncio
    async def test_watch_yields_on_change(self, store):
        service = QuizService(store, "test-app")
        await service.create_quiz("user-1", draft(title="First"))

        updates = service.watch_quizzes("user-1")
        first = await updates.__anext__()
        assert [q.title for q in first] == ["First"]

        await service.create_quiz("user-1", draft(title="Second"))
        second = await asyncio.wait_for(updates.__anext__(), timeout=2.0)
        assert sorted(q.title for q in second) == ["First", "Second"]

        await updates.aclose()
