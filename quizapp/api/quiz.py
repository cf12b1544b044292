"""
Quiz API Routes
FastAPI endpoints for quiz authoring and listing
"""
import json
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import StreamingResponse

from quizapp.api.dependencies import get_current_user_id, get_quiz_service
from quizapp.core.errors import DocumentStoreError, NotFoundError, QuizValidationError
from quizapp.models.quiz import Quiz, QuizDraft, QuizListItem
from quizapp.services.quiz_service import QuizService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quizzes", tags=["Quizzes"])


# ==================== AUTHORING ENDPOINTS ====================

@router.post(
    "",
    response_model=Quiz,
    status_code=status.HTTP_201_CREATED,
    summary="Create Quiz",
    description="Validate and store a new quiz in the caller's quiz collection"
)
async def create_quiz(
    draft: QuizDraft,
    user_id: str = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service)
):
    """
    Create a quiz

    Validation:
    - Title must not be empty
    - At least one question, each with text
    - Multiple-choice questions need options and a valid correct option index
    """
    try:
        return await service.create_quiz(user_id, draft)

    except QuizValidationError as e:
        logger.warning(f"⚠️ Invalid quiz draft: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    except DocumentStoreError as e:
        logger.error(f"❌ Store error while creating quiz: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to save quiz")

    except Exception as e:
        logger.error(f"❌ Unexpected error creating quiz: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred while saving the quiz"
        )


@router.get(
    "",
    response_model=List[QuizListItem],
    summary="List Quizzes",
    description="List the caller's quizzes"
)
async def list_quizzes(
    user_id: str = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service)
):
    try:
        quizzes = await service.list_quizzes(user_id)
        return [QuizListItem.from_quiz(quiz) for quiz in quizzes]

    except DocumentStoreError as e:
        logger.error(f"❌ Store error while listing quizzes: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to load quizzes")


@router.get(
    "/watch",
    summary="Watch Quizzes",
    description="Stream the caller's quiz list as newline-delimited JSON, one line per change"
)
async def watch_quizzes(
    user_id: str = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service)
):
    """
    Live quiz list

    Each line is a JSON array of quiz list items. The subscription is
    cancelled when the client disconnects.
    """
    async def stream():
        updates = service.watch_quizzes(user_id)
        try:
            async for quizzes in updates:
                items = [QuizListItem.from_quiz(quiz).model_dump(mode="json") for quiz in quizzes]
                yield json.dumps(items) + "\n"
        finally:
            await updates.aclose()

    return StreamingResponse(stream(), media_type="application/x-ndjson")


@router.get(
    "/{quiz_id}",
    response_model=Quiz,
    summary="Get Quiz",
    description="Retrieve one quiz with all its questions"
)
async def get_quiz(
    quiz_id: str = Path(..., description="Quiz ID"),
    user_id: str = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service)
):
    try:
        return await service.get_quiz(user_id, quiz_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except QuizValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    except DocumentStoreError as e:
        logger.error(f"❌ Store error while loading quiz {quiz_id}: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to load quiz")


@router.put(
    "/{quiz_id}",
    response_model=Quiz,
    summary="Update Quiz",
    description="Replace the authored content of an existing quiz"
)
async def update_quiz(
    draft: QuizDraft,
    quiz_id: str = Path(..., description="Quiz ID"),
    user_id: str = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service)
):
    try:
        return await service.update_quiz(user_id, quiz_id, draft)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except QuizValidationError as e:
        logger.warning(f"⚠️ Invalid quiz draft for {quiz_id}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    except DocumentStoreError as e:
        logger.error(f"❌ Store error while updating quiz {quiz_id}: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Failed to save quiz")


@router.delete(
    "/{quiz_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Quiz",
    description="Delete a quiz. Existing attempts are kept."
)
async def delete_quiz(
    quiz_id: str = Path(..., description="Quiz ID"),
    user_id: str = Depends(get_current_user_id),
    service: QuizService = Depends(get_quiz_service)
):
    try:
        await service.delete_quiz(user_id, quiz_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except DocumentStoreError as e:
        logger.error(f"❌ Store error while deleting quiz {quiz_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to delete quiz. Please try again."
        )
