"""
Shared FastAPI dependencies
Collaborators live on app.state and are created once in the app lifespan
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, Response, status

from quizapp.core.errors import AuthenticationError
from quizapp.core.identity import IdentityProvider
from quizapp.services.quiz_service import QuizService
from quizapp.services.results_service import ResultsService
from quizapp.services.session_service import QuizSessionManager


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity


USER_ID_HEADER = "X-User-Id"


def get_current_user_id(
    response: Response,
    x_user_id: Optional[str] = Header(default=None),
    identity: IdentityProvider = Depends(get_identity_provider)
) -> str:
    """
    User id from the X-User-Id header, or a new anonymous identity

    The resolved id is echoed in the X-User-Id response header so an
    anonymous client can keep using it.
    """
    try:
        user_id = identity.get_current_user_id(x_user_id)
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    response.headers[USER_ID_HEADER] = user_id
    return user_id


def get_quiz_service(request: Request) -> QuizService:
    return request.app.state.quiz_service


def get_results_service(request: Request) -> ResultsService:
    return request.app.state.results_service


def get_session_manager(request: Request) -> QuizSessionManager:
    return request.app.state.session_manager
