import pytest

from app.errors import ErrorKind
from app.services.auth_service import (
    INVALID_CREDENTIALS,
    MISSING_PASSWORD,
    MISSING_USERNAME,
    PASSWORD_TOO_LONG,
    PASSWORD_TOO_SHORT,
    USERNAME_TAKEN,
    USERNAME_TOO_LONG,
    AuthService,
)
from tests.constants import TEST_PASSWORD


@pytest.fixture
def auth_service(user_store, hasher, token_service) -> AuthService:
    return AuthService(user_store, hasher, token_service)


@pytest.mark.asyncio
async def test_register_stores_hash_and_returns_token(
    auth_service, user_store, hasher, token_service
):
    result = await auth_service.register("alice", TEST_PASSWORD)

    assert result.ok
    stored = user_store.users["alice"]
    assert stored.hashed_password != TEST_PASSWORD
    assert hasher.verify(TEST_PASSWORD, stored.hashed_password)
    assert result.value.user_id == stored.id
    assert result.value.username == "alice"
    assert token_service.subject_of(result.value.token) == stored.id


@pytest.mark.asyncio
async def test_login_succeeds_with_correct_password(auth_service, token_service):
    registered = (await auth_service.register("alice", TEST_PASSWORD)).value

    result = await auth_service.login("alice", TEST_PASSWORD)

    assert result.ok
    assert result.value.user_id == registered.user_id
    assert token_service.claims_of(result.value.token)["name"] == "alice"
    assert result.value.expires_at >= registered.expires_at


@pytest.mark.asyncio
async def test_unknown_user_and_wrong_password_fail_identically(auth_service):
    await auth_service.register("alice", TEST_PASSWORD)

    unknown = await auth_service.login("nobody", TEST_PASSWORD)
    wrong = await auth_service.login("alice", "not-the-password")

    assert unknown.error is INVALID_CREDENTIALS
    assert wrong.error is INVALID_CREDENTIALS
    assert unknown.error.kind is ErrorKind.AUTHENTICATION
    assert unknown.value is None and wrong.value is None


@pytest.mark.asyncio
async def test_unknown_user_still_costs_a_password_check(
    auth_service, hasher, monkeypatch
):
    await auth_service.register("alice", TEST_PASSWORD)
    checked = []
    verify = hasher.verify

    def recording_verify(plaintext, hash_value):
        checked.append(hash_value)
        return verify(plaintext, hash_value)

    monkeypatch.setattr(hasher, "verify", recording_verify)

    result = await auth_service.login("nobody", TEST_PASSWORD)

    assert result.error is INVALID_CREDENTIALS
    assert checked == [hasher.dummy_hash]
    assert hasher.dummy_hash.startswith("$2b$04$")


@pytest.mark.asyncio
async def test_usernames_are_case_sensitive(auth_service):
    await auth_service.register("alice", TEST_PASSWORD)
    result = await auth_service.login("Alice", TEST_PASSWORD)
    assert result.error is INVALID_CREDENTIALS


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,password,expected",
    [
        ("", TEST_PASSWORD, MISSING_USERNAME),
        ("   ", TEST_PASSWORD, MISSING_USERNAME),
        (None, TEST_PASSWORD, MISSING_USERNAME),
        ("alice", "", MISSING_PASSWORD),
        ("alice", None, MISSING_PASSWORD),
    ],
)
async def test_login_rejects_missing_fields_before_store_access(
    auth_service, user_store, username, password, expected
):
    result = await auth_service.login(username, password)

    assert result.error is expected
    assert user_store.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "username,password,expected",
    [
        ("", TEST_PASSWORD, MISSING_USERNAME),
        ("alice", "  ", MISSING_PASSWORD),
        ("a" * 101, TEST_PASSWORD, USERNAME_TOO_LONG),
        ("alice", "12345", PASSWORD_TOO_SHORT),
        ("alice", "x" * 73, PASSWORD_TOO_LONG),
        ("alice", "ü" * 40, PASSWORD_TOO_LONG),
    ],
)
async def test_register_validates_before_store_access(
    auth_service, user_store, username, password, expected
):
    result = await auth_service.register(username, password)

    assert result.error is expected
    assert result.error.kind is ErrorKind.VALIDATION
    assert user_store.calls == []


@pytest.mark.asyncio
async def test_register_rejects_taken_username(auth_service, user_store):
    await auth_service.register("alice", TEST_PASSWORD)

    result = await auth_service.register("alice", "another-password")

    assert result.error is USERNAME_TAKEN
    assert user_store.calls.count("create_user") == 1


@pytest.mark.asyncio
async def test_register_reports_lost_race_as_taken(auth_service, user_store):
    user_store.fail_next_create = True

    result = await auth_service.register("alice", TEST_PASSWORD)

    assert result.error is USERNAME_TAKEN
    assert "alice" not in user_store.users
