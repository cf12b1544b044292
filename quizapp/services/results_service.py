"""
Results Service
Reads stored attempts and picks the one the results view shows
"""
import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError

from quizapp.core.errors import NotFoundError
from quizapp.db.document_store import DocumentStore, attempts_path
from quizapp.models.attempt import Attempt

logger = logging.getLogger(__name__)


def select_latest(attempts: Iterable[Attempt]) -> Optional[Attempt]:
    """Most recent attempt by submissionTimeUtc; the store guarantees no order"""
    latest = None
    for attempt in attempts:
        if latest is None or attempt.submissionTimeUtc > latest.submissionTimeUtc:
            latest = attempt
    return latest


class ResultsService:
    """Service for reading a user's quiz attempts"""

    def __init__(self, store: DocumentStore, app_id: str):
        self.store = store
        self.app_id = app_id

    async def list_attempts(self, user_id: str, quiz_id: str) -> List[Attempt]:
        docs = await self.store.list_documents(
            attempts_path(self.app_id, user_id),
            {"quizId": quiz_id}
        )

        attempts = []
        for doc in docs:
            try:
                attempts.append(Attempt(**doc))
            except ValidationError as e:
                logger.warning(f"⚠️ Skipping malformed attempt {doc.get('id')}: {e}")

        logger.info(f"📊 Retrieved {len(attempts)} attempts for quiz {quiz_id}")
        return attempts

    async def latest_attempt(self, user_id: str, quiz_id: str) -> Attempt:
        """
        Raises:
            NotFoundError: If the user has no attempts for this quiz
        """
        latest = select_latest(await self.list_attempts(user_id, quiz_id))
        if latest is None:
            raise NotFoundError("No attempts found for this quiz.")
        return latest
