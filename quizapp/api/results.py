"""
Results API Routes
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from quizapp.api.dependencies import get_current_user_id, get_results_service
from quizapp.core.errors import DocumentStoreError, NotFoundError
from quizapp.models.attempt import AttemptResponse
from quizapp.services.results_service import ResultsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/results", tags=["Results"])


@router.get(
    "/{quiz_id}/latest",
    response_model=AttemptResponse,
    summary="Latest Attempt",
    description="Most recent attempt of the caller for a quiz, with the per-question breakdown"
)
async def get_latest_attempt(
    quiz_id: str = Path(..., description="Quiz ID"),
    user_id: str = Depends(get_current_user_id),
    service: ResultsService = Depends(get_results_service)
):
    try:
        attempt = await service.latest_attempt(user_id, quiz_id)
        return AttemptResponse.from_attempt(attempt)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    except DocumentStoreError as e:
        logger.error(f"❌ Store error while loading results for {quiz_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to load quiz results. Please try again."
        )


@router.get(
    "/{quiz_id}/attempts",
    response_model=List[AttemptResponse],
    summary="All Attempts",
    description="Every attempt of the caller for a quiz, newest first"
)
async def list_attempts(
    quiz_id: str = Path(..., description="Quiz ID"),
    user_id: str = Depends(get_current_user_id),
    service: ResultsService = Depends(get_results_service)
):
    try:
        attempts = await service.list_attempts(user_id, quiz_id)

    except DocumentStoreError as e:
        logger.error(f"❌ Store error while listing attempts for {quiz_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to load quiz results. Please try again."
        )

    attempts.sort(key=lambda a: a.submissionTimeUtc, reverse=True)
    return [AttemptResponse.from_attempt(attempt) for attempt in attempts]
