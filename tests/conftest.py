"""
Shared fixtures: an in-memory document store and sample quizzes
"""
import copy
from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from quizapp.core.config import Settings
from quizapp.core.errors import TransientStoreError
from quizapp.db.document_store import DocumentStore
from quizapp.main import create_app
from quizapp.models.quiz import Quiz


class InMemoryDocumentStore(DocumentStore):
    """DocumentStore keeping documents in dicts; subscribe() is inherited"""

    def __init__(self, poll_interval: float = 0.01):
        super().__init__(db=None, poll_interval=poll_interval)
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.add_calls = 0
        # Number of upcoming add_document calls that fail with a transient error
        self.fail_adds = 0

    def _docs(self, path: str) -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(path, {})

    async def get_document(self, path: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._docs(path).get(doc_id)
        if doc is None:
            return None
        return {**copy.deepcopy(doc), "id": doc_id}

    async def put_document(self, path, doc_id, document, merge=False) -> None:
        stored = {k: v for k, v in copy.deepcopy(document).items() if k != "id"}
        docs = self._docs(path)
        if merge and doc_id in docs:
            docs[doc_id].update(stored)
        else:
            docs[doc_id] = stored

    async def add_document(self, path: str, document: Dict[str, Any]) -> str:
        self.add_calls += 1
        if self.fail_adds > 0:
            self.fail_adds -= 1
            raise TransientStoreError("add failed on purpose")
        doc_id = uuid4().hex
        self._docs(path)[doc_id] = {k: v for k, v in copy.deepcopy(document).items() if k != "id"}
        return doc_id

    async def delete_document(self, path: str, doc_id: str) -> bool:
        return self._docs(path).pop(doc_id, None) is not None

    async def list_documents(self, path: str, query=None) -> List[Dict[str, Any]]:
        query = query or {}
        return [
            {**copy.deepcopy(doc), "id": doc_id}
            for doc_id, doc in self._docs(path).items()
            if all(doc.get(key) == value for key, value in query.items())
        ]


def make_quiz(time_limit_minutes: Optional[int] = None, quiz_id: str = "quiz-1") -> Quiz:
    """2 mcq + 1 true/false + 1 open-ended"""
    return Quiz(
        id=quiz_id,
        title="Solar System",
        description="Warm-up",
        timeLimitMinutes=time_limit_minutes,
        questions=[
            {
                "type": "mcq",
                "text": "Which planet is closest to the sun?",
                "options": [{"id": "a", "text": "Venus"}, {"id": "b", "text": "Mercury"}],
                "correctAnswer": "1"
            },
            {
                "type": "mcq",
                "text": "How many moons does Mars have?",
                "options": [{"text": "0"}, {"text": "1"}, {"text": "2"}],
                "correctAnswer": 2
            },
            {"type": "true_false", "text": "The sun is a star.", "correctAnswer": "True"},
            {"type": "open_ended", "text": "Why is Mars red?"}
        ]
    )


@pytest.fixture
def quiz() -> Quiz:
    return make_quiz()


@pytest.fixture
def timed_quiz() -> Quiz:
    return make_quiz(time_limit_minutes=1)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        app_id="test-app",
        tick_interval_seconds=60.0,
        submission_max_retries=2,
        submission_initial_backoff_seconds=0.0,
        subscribe_poll_interval_seconds=0.01,
        log_level="WARNING"
    )


@pytest.fixture
def client(settings, store):
    app = create_app(settings=settings, store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def quiz_payload() -> Dict[str, Any]:
    return {
        "title": "Solar System",
        "description": "Warm-up",
        "questions": [
            {
                "type": "mcq",
                "text": "Which planet is closest to the sun?",
                "options": [{"text": "Venus"}, {"text": "Mercury"}],
                "correctAnswer": "1"
            },
            {"type": "true_false", "text": "The sun is a star.", "correctAnswer": "True"},
            {"type": "open_ended", "text": "Why is Mars red?"}
        ]
    }
