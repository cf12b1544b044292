"""
Quiz Models
Pydantic models for quiz documents and their question variants
FILE: quizapp/models/quiz.py
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

TRUE_FALSE_OPTIONS = ["True", "False"]


class QuestionOption(BaseModel):
    """Single answer option of a multiple-choice question"""
    id: Optional[str] = Field(default=None, description="Option identifier")
    text: str = Field(..., description="Option text shown to the user")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        """Builders may send numeric option ids"""
        if v is None:
            return v
        return str(v)


class McqQuestion(BaseModel):
    """Multiple-choice question; correctAnswer is the option index as text"""
    type: Literal["mcq"] = "mcq"
    text: str = Field(..., description="Question text")
    options: List[QuestionOption] = Field(..., description="Ordered answer options")
    correctAnswer: str = Field(..., description="Index of the correct option, e.g. \"1\"")

    @field_validator("correctAnswer", mode="before")
    @classmethod
    def stringify_correct_answer(cls, v):
        """Store the index as text whatever the client sent"""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    def option_texts(self) -> List[str]:
        return [option.text for option in self.options]

    class Config:
        json_schema_extra = {
            "example": {
                "type": "mcq",
                "text": "Which planet is closest to the sun?",
                "options": [
                    {"id": "a", "text": "Venus"},
                    {"id": "b", "text": "Mercury"}
                ],
                "correctAnswer": "1"
            }
        }


class TrueFalseQuestion(BaseModel):
    """True/false question; options are always True and False"""
    type: Literal["true_false"] = "true_false"
    text: str = Field(..., description="Question text")
    correctAnswer: Literal["True", "False"] = Field(..., description="Either \"True\" or \"False\"")

    @property
    def options(self) -> List[QuestionOption]:
        return [QuestionOption(id=value, text=value) for value in TRUE_FALSE_OPTIONS]

    def option_texts(self) -> List[str]:
        return list(TRUE_FALSE_OPTIONS)


class OpenEndedQuestion(BaseModel):
    """Free-text question; never graded"""
    type: Literal["open_ended"] = "open_ended"
    text: str = Field(..., description="Question text")

    def option_texts(self) -> List[str]:
        return []


Question = Annotated[
    Union[McqQuestion, TrueFalseQuestion, OpenEndedQuestion],
    Field(discriminator="type")
]


class QuizDraft(BaseModel):
    """
    Request model for creating or updating a quiz
    Authoring rules are checked by the quiz service, not here
    """
    title: str = Field(..., description="Quiz title")
    description: Optional[str] = Field(default=None, description="Optional description")
    timeLimitMinutes: Optional[int] = Field(
        default=None,
        description="Countdown in minutes; omit for an untimed quiz"
    )
    questions: List[Question] = Field(default_factory=list, description="Ordered questions")

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Solar System",
                "description": "Warm-up quiz",
                "timeLimitMinutes": 5,
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
        }


class Quiz(QuizDraft):
    """Stored quiz document as consumed by the session engine"""
    id: Optional[str] = Field(default=None, description="Opaque id assigned by the store")
    createdAt: Optional[datetime] = Field(default=None, description="Creation timestamp")
    createdBy: Optional[str] = Field(default=None, description="Author user id")

    @property
    def is_timed(self) -> bool:
        return bool(self.timeLimitMinutes)

    @property
    def time_limit_seconds(self) -> Optional[int]:
        if not self.timeLimitMinutes:
            return None
        return self.timeLimitMinutes * 60

    def to_document(self) -> dict:
        """Serialize for the document store (the store owns the id)"""
        return self.model_dump(exclude={"id"})


class QuizListItem(BaseModel):
    """Lightweight entry for quiz listings"""
    id: str
    title: str
    description: Optional[str] = None
    timeLimitMinutes: Optional[int] = None
    questionCount: int
    createdAt: Optional[datetime] = None

    @classmethod
    def from_quiz(cls, quiz: Quiz) -> "QuizListItem":
        return cls(
            id=quiz.id,
            title=quiz.title,
            description=quiz.description,
            timeLimitMinutes=quiz.timeLimitMinutes,
            questionCount=len(quiz.questions),
            createdAt=quiz.createdAt
        )
