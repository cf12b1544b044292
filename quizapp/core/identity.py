"""
Identity Provider
Resolves the user identifier that scopes quiz and attempt collections
"""
import logging
import uuid
from typing import Optional

from quizapp.core.config import Settings
from quizapp.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

ANONYMOUS_PREFIX = "anon_"


class IdentityProvider:
    """
    Thin adapter over the external identity collaborator

    Sign-in itself happens upstream; this class only turns the claimed
    identifier into the user id used for collection paths. A caller without
    a claim is signed in anonymously under a fresh identifier, which it must
    present on later requests to see its own quizzes again.
    """

    def __init__(self, settings: Settings):
        self.allow_anonymous = settings.allow_anonymous

    def get_current_user_id(self, claimed: Optional[str] = None) -> str:
        """
        Return the current user identifier

        Args:
            claimed: Identifier supplied by the identity collaborator, if any

        Returns:
            Non-empty user identifier

        Raises:
            AuthenticationError: If nothing is claimed and anonymous use is disabled
        """
        if claimed and claimed.strip():
            user_id = claimed.strip()
            if "/" in user_id:
                raise AuthenticationError("User identifier must not contain '/'")
            return user_id

        if not self.allow_anonymous:
            raise AuthenticationError("Sign-in required")

        return self.sign_in_anonymously()

    def sign_in_anonymously(self) -> str:
        """Mint a new anonymous user identifier"""
        user_id = f"{ANONYMOUS_PREFIX}{uuid.uuid4().hex}"
        logger.info(f"👤 Signed in anonymously as {user_id}")
        return user_id
