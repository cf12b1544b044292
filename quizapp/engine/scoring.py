"""
Scoring Engine
Pure evaluation of an answer buffer against a quiz definition
"""
from typing import Any, List, Mapping, NamedTuple, Optional

from quizapp.models.attempt import DetailedResult
from quizapp.models.quiz import McqQuestion, OpenEndedQuestion, Quiz, TrueFalseQuestion

OPEN_ENDED_CORRECT_ANSWER = "N/A (Open-Ended)"


class Evaluation(NamedTuple):
    score: int
    total_questions: int
    detailed_results: List[DetailedResult]


def as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def resolve_correct_answer(question) -> str:
    """
    Correct answer as shown to the user

    For mcq this is the option text at the correct index; when the index
    does not resolve the raw stored value is returned instead.
    """
    if isinstance(question, McqQuestion):
        try:
            index = int(question.correctAnswer)
        except (TypeError, ValueError):
            return question.correctAnswer
        if 0 <= index < len(question.options):
            return question.options[index].text
        return question.correctAnswer
    if isinstance(question, TrueFalseQuestion):
        return question.correctAnswer
    return OPEN_ENDED_CORRECT_ANSWER


def grade_answer(question, user_answer: str) -> Optional[bool]:
    """Return True/False for graded questions and None for open-ended ones"""
    if isinstance(question, OpenEndedQuestion):
        return None
    if isinstance(question, McqQuestion):
        return as_text(question.correctAnswer) == user_answer
    if isinstance(question, TrueFalseQuestion):
        return question.correctAnswer == user_answer
    return False


def evaluate(
    quiz: Quiz,
    answers: Mapping[int, Any],
    count_ungraded: bool = True
) -> Evaluation:
    """
    Score an answer buffer

    Args:
        quiz: Quiz definition
        answers: Raw answers keyed by question index; missing keys count as unanswered
        count_ungraded: Whether open-ended questions count toward total_questions

    Returns:
        Evaluation with score, total_questions and one DetailedResult per question
    """
    score = 0
    graded = 0
    detailed_results = []

    for index, question in enumerate(quiz.questions):
        user_answer = as_text(answers.get(index, ""))
        is_correct = grade_answer(question, user_answer)

        if is_correct is not None:
            graded += 1
        if is_correct:
            score += 1

        detailed_results.append(
            DetailedResult(
                questionIndex=index,
                questionText=question.text,
                type=question.type,
                userAnswer=user_answer,
                correctAnswer=resolve_correct_answer(question),
                isCorrect=is_correct,
                options=question.option_texts()
            )
        )

    total_questions = len(quiz.questions) if count_ungraded else graded
    return Evaluation(score, total_questions, detailed_results)
