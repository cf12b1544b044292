import pytest

from quizapp.core.config import Settings
from quizapp.core.errors import AuthenticationError
from quizapp.core.identity import IdentityProvider


def provider(allow_anonymous: bool = True) -> IdentityProvider:
    return IdentityProvider(Settings(_env_file=None, allow_anonymous=allow_anonymous))


def test_claimed_id_is_used():
    assert provider().get_current_user_id("  user-1 ") == "user-1"


def test_each_anonymous_caller_gets_own_id():
    identity = provider()
    first = identity.get_current_user_id()
    second = identity.get_current_user_id("")

    assert first.startswith("anon_")
    assert second.startswith("anon_")
    assert first != second


def test_anonymous_id_can_be_claimed_back():
    identity = provider()
    anonymous = identity.get_current_user_id(None)
    assert identity.get_current_user_id(anonymous) == anonymous


def test_anonymous_disabled():
    with pytest.raises(AuthenticationError):
        provider(allow_anonymous=False).get_current_user_id()


def test_claimed_id_with_slash_is_rejected():
    with pytest.raises(AuthenticationError):
        provider().get_current_user_id("a/b")
