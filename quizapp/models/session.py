"""
Session Request/Response Models
"""
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from quizapp.models.attempt import AttemptResponse


class StartSessionRequest(BaseModel):
    """Request model for starting a quiz session"""
    quizId: str = Field(..., min_length=1, description="ID of the quiz to take")

    class Config:
        json_schema_extra = {
            "example": {
                "quizId": "9d8c7b6a5f4e3d2c1b0a9f8e7d6c5b4a"
            }
        }


class AnswerRequest(BaseModel):
    """Answer for one question; not checked against the options"""
    value: str = Field(default="", description="Option index, True/False or free text")


class AdvanceRequest(BaseModel):
    """Move the question pointer; clamped to the quiz bounds"""
    delta: int = Field(default=1, description="Positive for next, negative for previous")


class PublicQuestion(BaseModel):
    """
    Question as shown while taking a quiz
    SECURITY: correctAnswer is never part of this model
    """
    index: int
    type: Literal["mcq", "true_false", "open_ended"]
    text: str
    options: List[str] = Field(default_factory=list)


class SessionStateResponse(BaseModel):
    """Snapshot of a running or submitted session"""
    sessionId: str
    quizId: Optional[str]
    title: str
    status: Literal["in_progress", "submitted"]
    currentIndex: int
    totalQuestions: int
    currentQuestion: PublicQuestion
    answers: Dict[str, str]
    remainingSeconds: Optional[int] = Field(default=None, description="Null for untimed quizzes")
    timedOut: bool = False
    attemptId: Optional[str] = None
    lastError: Optional[str] = Field(default=None, description="Set when an automatic submission failed")

    class Config:
        json_schema_extra = {
            "example": {
                "sessionId": "session_abc123def456",
                "quizId": "9d8c7b6a5f4e3d2c1b0a9f8e7d6c5b4a",
                "title": "Solar System",
                "status": "in_progress",
                "currentIndex": 0,
                "totalQuestions": 2,
                "currentQuestion": {
                    "index": 0,
                    "type": "mcq",
                    "text": "Which planet is closest to the sun?",
                    "options": ["Venus", "Mercury"]
                },
                "answers": {"0": "", "1": ""},
                "remainingSeconds": 299,
                "timedOut": False,
                "attemptId": None,
                "lastError": None
            }
        }


class SubmitSessionResponse(BaseModel):
    """Result of a submit call"""
    sessionId: str
    alreadySubmitted: bool = Field(
        default=False,
        description="True when the session had been submitted before this call"
    )
    attempt: Optional[AttemptResponse] = None
