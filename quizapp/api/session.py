"""
Session API Routes
Taking a quiz: start, answer, navigate, submit, tear down
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status

from quizapp.api.dependencies import get_current_user_id, get_session_manager
from quizapp.core.errors import (
    DocumentStoreError,
    InvalidQuizError,
    NotFoundError,
    QuizValidationError,
    SessionClosedError,
    SubmissionError
)
from quizapp.models.attempt import AttemptResponse
from quizapp.models.session import (
    AdvanceRequest,
    AnswerRequest,
    PublicQuestion,
    SessionStateResponse,
    StartSessionRequest,
    SubmitSessionResponse
)
from quizapp.services.session_service import QuizSessionManager, QuizSessionRunner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _to_state(runner: QuizSessionRunner) -> SessionStateResponse:
    session = runner.session
    question = session.current_question
    return SessionStateResponse(
        sessionId=runner.session_id,
        quizId=session.quiz.id,
        title=session.quiz.title,
        status=session.status.value,
        currentIndex=session.current_index,
        totalQuestions=session.question_count,
        currentQuestion=PublicQuestion(
            index=session.current_index,
            type=question.type,
            text=question.text,
            options=question.option_texts()
        ),
        answers={str(index): value for index, value in session.answers.items()},
        remainingSeconds=session.remaining_seconds,
        timedOut=session.timed_out,
        attemptId=runner.attempt.id if runner.attempt else None,
        lastError=runner.last_error
    )


def _get_runner(manager: QuizSessionManager, session_id: str, user_id: str) -> QuizSessionRunner:
    try:
        return manager.get_runner(session_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post(
    "",
    response_model=SessionStateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a quiz session",
    description="""
    Start taking a quiz.

    **Workflow:**
    1. Loads the quiz from the caller's quiz collection
    2. Initializes an empty answer for every question
    3. Starts the countdown when the quiz has a time limit

    When the countdown reaches zero the session is submitted automatically.
    """
)
async def start_session(
    request: StartSessionRequest,
    user_id: str = Depends(get_current_user_id),
    manager: QuizSessionManager = Depends(get_session_manager)
):
    try:
        runner = await manager.start_session(user_id, request.quizId.strip())
        return _to_state(runner)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except (InvalidQuizError, QuizValidationError) as e:
        logger.warning(f"⚠️ Cannot start quiz {request.quizId}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    except DocumentStoreError as e:
        logger.error(f"❌ Store error while starting session: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to load quiz. Please try again.")

    except Exception as e:
        logger.error(f"Unexpected error starting session: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while starting the session"
        )


@router.get(
    "/{session_id}",
    response_model=SessionStateResponse,
    summary="Get session state"
)
async def get_session(
    session_id: str = Path(..., description="Session ID"),
    user_id: str = Depends(get_current_user_id),
    manager: QuizSessionManager = Depends(get_session_manager)
):
    return _to_state(_get_runner(manager, session_id, user_id))


@router.put(
    "/{session_id}/answers/{index}",
    response_model=SessionStateResponse,
    summary="Answer a question"
)
async def set_answer(
    request: AnswerRequest,
    session_id: str = Path(..., description="Session ID"),
    index: int = Path(..., description="Question index"),
    user_id: str = Depends(get_current_user_id),
    manager: QuizSessionManager = Depends(get_session_manager)
):
    runner = _get_runner(manager, session_id, user_id)
    try:
        await runner.set_answer(index, request.value)
        return _to_state(runner)

    except IndexError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except SessionClosedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "/{session_id}/advance",
    response_model=SessionStateResponse,
    summary="Move to another question"
)
async def advance(
    request: AdvanceRequest,
    session_id: str = Path(..., description="Session ID"),
    user_id: str = Depends(get_current_user_id),
    manager: QuizSessionManager = Depends(get_session_manager)
):
    runner = _get_runner(manager, session_id, user_id)
    try:
        await runner.advance(request.delta)
        return _to_state(runner)

    except SessionClosedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "/{session_id}/submit",
    response_model=SubmitSessionResponse,
    summary="Submit the quiz",
    description="""
    Score the session and store the attempt.

    Submitting twice is harmless: the second call reports the stored attempt
    with `alreadySubmitted = true`. If storing fails the session stays open
    and the call can be retried.
    """
)
async def submit_session(
    session_id: str = Path(..., description="Session ID"),
    user_id: str = Depends(get_current_user_id),
    manager: QuizSessionManager = Depends(get_session_manager)
):
    runner = _get_runner(manager, session_id, user_id)
    try:
        attempt = await runner.submit()

    except SubmissionError as e:
        logger.error(f"❌ Submission failed for session {session_id}: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if attempt is None:
        stored = runner.attempt
        return SubmitSessionResponse(
            sessionId=session_id,
            alreadySubmitted=True,
            attempt=AttemptResponse.from_attempt(stored) if stored else None
        )

    return SubmitSessionResponse(
        sessionId=session_id,
        attempt=AttemptResponse.from_attempt(attempt)
    )


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave a session",
    description="Stop the countdown and discard the session. Unsubmitted answers are lost."
)
async def end_session(
    session_id: str = Path(..., description="Session ID"),
    user_id: str = Depends(get_current_user_id),
    manager: QuizSessionManager = Depends(get_session_manager)
):
    try:
        await manager.end_session(session_id, user_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
