"""
Attempt Models
Persisted record of one submitted quiz session and its evaluation
FILE: quizapp/models/attempt.py
"""
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class DetailedResult(BaseModel):
    """
    Evaluation of a single question
    isCorrect is None for open-ended questions (not applicable)
    """
    questionIndex: int = Field(..., ge=0, description="Position in the quiz")
    questionText: str = Field(..., description="Question text")
    type: Literal["mcq", "true_false", "open_ended"] = Field(..., description="Question type")
    userAnswer: str = Field(default="", description="Raw answer, empty when unanswered")
    correctAnswer: str = Field(..., description="Resolved correct answer text")
    isCorrect: Optional[bool] = Field(
        default=None,
        description="True/False when graded, None when not applicable"
    )
    options: List[str] = Field(default_factory=list, description="Option texts shown")

    @property
    def is_graded(self) -> bool:
        return self.isCorrect is not None


class Attempt(BaseModel):
    """Attempt document as stored in the per-user quizAttempts collection"""
    id: Optional[str] = Field(default=None, description="Opaque id assigned by the store")
    quizId: Optional[str] = Field(..., description="Quiz that was attempted")
    userId: str = Field(..., description="User who took the quiz")
    score: int = Field(..., ge=0, description="Number of correct answers")
    totalQuestions: int = Field(..., ge=0, description="Denominator for the score")
    submissionTimeUtc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the attempt was submitted"
    )
    timeTakenSeconds: Optional[int] = Field(default=None, description="Null for untimed quizzes")
    timedOut: bool = Field(default=False, description="Submitted by the countdown")
    answers: Dict[str, str] = Field(default_factory=dict, description="Raw answers by question index")
    detailedResults: List[DetailedResult] = Field(default_factory=list)

    @field_validator("submissionTimeUtc")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Documents read back from the store may carry naive datetimes"""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def score_percentage(self) -> float:
        if self.totalQuestions <= 0:
            return 0.0
        return round((self.score / self.totalQuestions) * 100, 2)

    def to_document(self) -> dict:
        return self.model_dump(exclude={"id"})

    class Config:
        json_schema_extra = {
            "example": {
                "id": "3f2c9a0e5b7d4c1e9a8b6d5c4e3f2a1b",
                "quizId": "9d8c7b6a5f4e3d2c1b0a9f8e7d6c5b4a",
                "userId": "anon_0c1d2e3f",
                "score": 1,
                "totalQuestions": 2,
                "submissionTimeUtc": "2025-12-08T10:30:00Z",
                "timeTakenSeconds": 42,
                "timedOut": False,
                "answers": {"0": "1", "1": "Tides"},
                "detailedResults": [
                    {
                        "questionIndex": 0,
                        "questionText": "Which planet is closest to the sun?",
                        "type": "mcq",
                        "userAnswer": "1",
                        "correctAnswer": "Mercury",
                        "isCorrect": True,
                        "options": ["Venus", "Mercury"]
                    },
                    {
                        "questionIndex": 1,
                        "questionText": "What causes tides?",
                        "type": "open_ended",
                        "userAnswer": "Tides",
                        "correctAnswer": "N/A (Open-Ended)",
                        "isCorrect": None,
                        "options": []
                    }
                ]
            }
        }


class AttemptResponse(Attempt):
    """Attempt as returned by the results endpoints"""
    percentage: float = Field(..., ge=0.0, le=100.0, description="Score as percentage (0-100)")

    @classmethod
    def from_attempt(cls, attempt: Attempt) -> "AttemptResponse":
        return cls(**attempt.model_dump(), percentage=attempt.score_percentage)
