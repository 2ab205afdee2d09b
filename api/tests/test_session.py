from __future__ import annotations

from auth import security
from auth.session import AuthStatus, extract_bearer_token, resolve_auth
from tests.conftest import STATIC_TOKEN, TEST_SECRET
from tests.fakes import FakeUserRepository

ALLOWED = (STATIC_TOKEN,)


async def _resolve(users: FakeUserRepository, *, authorization: str | None = None, cookie: str | None = None):
    return await resolve_auth(
        users=users,
        secret=TEST_SECRET,
        allowed_tokens=ALLOWED,
        authorization=authorization,
        session_cookie=cookie,
    )


def test_extract_bearer_token() -> None:
    assert extract_bearer_token(f"Bearer {STATIC_TOKEN}") == STATIC_TOKEN
    assert extract_bearer_token(f"bearer {STATIC_TOKEN}") is None
    assert extract_bearer_token("Bearer ") is None
    assert extract_bearer_token(None) is None


async def test_static_token_passes_without_cookie() -> None:
    result = await _resolve(FakeUserRepository(), authorization=f"Bearer {STATIC_TOKEN}")
    assert result.status is AuthStatus.ANONYMOUS
    assert result.user is None
    assert result.user_id is None


async def test_unknown_bearer_falls_back_to_cookie_check() -> None:
    result = await _resolve(FakeUserRepository(), authorization="Bearer not-on-the-list")
    assert result.is_rejected
    assert result.reason == "Not authenticated."


async def test_missing_cookie_is_rejected() -> None:
    result = await _resolve(FakeUserRepository())
    assert result.is_rejected


async def test_valid_cookie_resolves_user() -> None:
    users = FakeUserRepository()
    row = users.add("newton")
    token = security.build_session_token(user_id=row["id"], secret=TEST_SECRET)

    result = await _resolve(users, cookie=token)

    assert result.status is AuthStatus.AUTHENTICATED
    assert result.user_id == row["id"]


async def test_cookie_for_deleted_user_is_rejected() -> None:
    token = security.build_session_token(user_id=99, secret=TEST_SECRET)
    result = await _resolve(FakeUserRepository(), cookie=token)
    assert result.is_rejected
    assert result.reason == "User not found."


async def test_expired_cookie_is_rejected() -> None:
    users = FakeUserRepository()
    row = users.add("newton")
    issued_at = security.now_epoch_s() - security.SESSION_TOKEN_TTL_SECONDS - 1
    token = security.build_session_token(user_id=row["id"], secret=TEST_SECRET, issued_at=issued_at)

    result = await _resolve(users, cookie=token)

    assert result.is_rejected
    assert "expired" in result.reason


async def test_garbage_cookie_is_rejected() -> None:
    result = await _resolve(FakeUserRepository(), cookie="not.a.jwt")
    assert result.is_rejected
