"""
Quiz Service
Business logic for quiz authoring, listing and deletion
FILE: quizapp/services/quiz_service.py
"""
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, List

from pydantic import ValidationError

from quizapp.core.errors import NotFoundError, QuizValidationError
from quizapp.db.document_store import DocumentStore, quizzes_path
from quizapp.models.quiz import McqQuestion, Quiz, QuizDraft

logger = logging.getLogger(__name__)


def validate_draft(draft: QuizDraft) -> None:
    """
    Authoring rules applied before a quiz is stored

    Raises:
        QuizValidationError: With a message naming the first broken rule
    """
    if not draft.title or not draft.title.strip():
        raise QuizValidationError("Quiz title cannot be empty.")

    if draft.timeLimitMinutes is not None and draft.timeLimitMinutes <= 0:
        raise QuizValidationError("Time limit must be a positive number of minutes.")

    if not draft.questions:
        raise QuizValidationError("Please add at least one question to the quiz.")

    for number, question in enumerate(draft.questions, start=1):
        if not question.text or not question.text.strip():
            raise QuizValidationError(f"Question text cannot be empty for question {number}.")

        if isinstance(question, McqQuestion):
            if not question.options:
                raise QuizValidationError(f"Question {number} must have at least one option.")
            if any(not option.text.strip() for option in question.options):
                raise QuizValidationError(f"Option text cannot be empty for question {number}.")
            try:
                correct_index = int(question.correctAnswer)
            except (TypeError, ValueError):
                raise QuizValidationError(
                    f"Please select a correct answer for question {number}."
                )
            if not 0 <= correct_index < len(question.options):
                raise QuizValidationError(
                    f"Correct answer for question {number} must be an option index "
                    f"between 0 and {len(question.options) - 1}."
                )


def quiz_from_document(doc: dict) -> Quiz:
    """Build a Quiz from a stored document"""
    try:
        return Quiz(**doc)
    except ValidationError as e:
        logger.error(f"❌ Stored quiz {doc.get('id')} is malformed: {e}")
        raise QuizValidationError(f"Stored quiz {doc.get('id')} is malformed")


class QuizService:
    """Service for creating, reading, updating and deleting a user's quizzes"""

    def __init__(self, store: DocumentStore, app_id: str):
        self.store = store
        self.app_id = app_id

    def _path(self, user_id: str) -> str:
        return quizzes_path(self.app_id, user_id)

    async def create_quiz(self, user_id: str, draft: QuizDraft) -> Quiz:
        """
        Validate and store a new quiz

        Returns:
            The stored quiz including its new id
        """
        validate_draft(draft)

        quiz = Quiz(
            **draft.model_dump(),
            createdAt=datetime.now(timezone.utc),
            createdBy=user_id
        )
        quiz_id = await self.store.add_document(self._path(user_id), quiz.to_document())
        quiz.id = quiz_id

        logger.info(f"✅ Created quiz {quiz_id} ('{quiz.title}') for user {user_id}")
        return quiz

    async def update_quiz(self, user_id: str, quiz_id: str, draft: QuizDraft) -> Quiz:
        """
        Replace the authored content of an existing quiz

        Raises:
            NotFoundError: If the quiz does not exist
        """
        validate_draft(draft)
        existing = await self.get_quiz(user_id, quiz_id)

        quiz = Quiz(
            **draft.model_dump(),
            id=quiz_id,
            createdAt=existing.createdAt,
            createdBy=existing.createdBy or user_id
        )
        # Merge keeps fields written by other clients
        await self.store.put_document(
            self._path(user_id),
            quiz_id,
            quiz.to_document(),
            merge=True
        )

        logger.info(f"✅ Updated quiz {quiz_id} for user {user_id}")
        return quiz

    async def get_quiz(self, user_id: str, quiz_id: str) -> Quiz:
        """
        Raises:
            NotFoundError: If the quiz does not exist
        """
        doc = await self.store.get_document(self._path(user_id), quiz_id)
        if not doc:
            logger.warning(f"⚠️ Quiz not found: {quiz_id}")
            raise NotFoundError("Quiz not found.")
        return quiz_from_document(doc)

    async def list_quizzes(self, user_id: str) -> List[Quiz]:
        docs = await self.store.list_documents(self._path(user_id))
        quizzes = [quiz_from_document(doc) for doc in docs]
        logger.info(f"📊 Retrieved {len(quizzes)} quizzes for user {user_id}")
        return quizzes

    async def delete_quiz(self, user_id: str, quiz_id: str) -> None:
        """
        Raises:
            NotFoundError: If the quiz does not exist
        """
        deleted = await self.store.delete_document(self._path(user_id), quiz_id)
        if not deleted:
            logger.warning(f"⚠️ Quiz not found for deletion: {quiz_id}")
            raise NotFoundError("Quiz not found.")
        logger.info(f"🗑️ Deleted quiz {quiz_id} for user {user_id}")

    async def watch_quizzes(self, user_id: str) -> AsyncIterator[List[Quiz]]:
        """
        Live quiz list for a user

        Yields a fresh list every time the collection changes. The
        underlying subscription is cancelled when the caller stops
        iterating (aclose or task cancellation).
        """
        async with self.store.subscribe(self._path(user_id)) as snapshots:
            async for snapshot in snapshots:
                yield [quiz_from_document(doc) for doc in snapshot]
