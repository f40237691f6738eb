import pytest

from regdesk.services.errors import ErrorKind
from regdesk.services.record_store import SESSIONS, USERS


@pytest.fixture
def users(store):
    store.append(USERS, {"username": "Admin", "password": "s3cret", "status": "active"})
    store.append(USERS, {"username": "dormant", "password": "pw", "status": "inactive"})
    return store


def test_login_returns_token_and_creates_session(sessions, users, store, clock):
    result = sessions.login("admin", "s3cret")

    assert result.success
    token = result.data["token"]
    assert len(token) == 32
    row = store.find_by_key(SESSIONS, "token", token)
    assert row.username == "Admin"
    assert (row.expires_at - clock.now).total_seconds() == 24 * 3600


def test_login_failures(sessions, users):
    assert sessions.login("admin", "wrong").error is ErrorKind.INVALID_CREDENTIALS
    assert sessions.login("ghost", "s3cret").error is ErrorKind.INVALID_CREDENTIALS
    assert sessions.login("admin", "S3CRET").error is ErrorKind.INVALID_CREDENTIALS
    assert sessions.login("dormant", "pw").error is ErrorKind.INACTIVE_ACCOUNT
    assert sessions.login("", "").error is ErrorKind.VALIDATION_ERROR


def test_second_login_invalidates_first_token(sessions, users, store):
    first = sessions.login("Admin", "s3cret").data["token"]
    second = sessions.login("ADMIN", "s3cret").data["token"]

    assert sessions.validate(first).error is ErrorKind.INVALID_TOKEN
    assert sessions.validate(second).data["username"] == "Admin"
    assert store.count(SESSIONS) == 1


def test_validate_unknown_token(sessions):
    assert sessions.validate("deadbeef").error is ErrorKind.INVALID_TOKEN
    assert sessions.validate("").error is ErrorKind.INVALID_TOKEN


def test_expired_token_is_deleted_on_validate(sessions, users, store, clock):
    token = sessions.login("admin", "s3cret").data["token"]

    clock.advance(hours=23, minutes=59)
    assert sessions.validate(token).success

    clock.advance(minutes=2)
    result = sessions.validate(token)
    assert result.error is ErrorKind.TOKEN_EXPIRED
    assert store.count(SESSIONS) == 0
    assert sessions.sweep_expired() == 0
    assert sessions.validate(token).error is ErrorKind.INVALID_TOKEN


def test_logout_is_idempotent(sessions, users, store):
    token = sessions.login("admin", "s3cret").data["token"]

    assert sessions.logout(token).success
    assert store.count(SESSIONS) == 0
    assert sessions.logout(token).success
    assert sessions.logout("").success


def test_get_user_info(sessions, users, store):
    token = sessions.login("admin", "s3cret").data["token"]

    info = sessions.get_user_info(token)
    assert info.success
    assert info.data == {"username": "Admin", "status": "active"}

    assert sessions.get_user_info("nope").error is ErrorKind.INVALID_TOKEN


def test_get_user_info_for_orphaned_session(sessions, users, store):
    token = sessions.login("admin", "s3cret").data["token"]
    user = store.find_by_key(USERS, "username", "admin")
    store.delete_row(store.ref(USERS, user))

    assert sessions.get_user_info(token).error is ErrorKind.USER_NOT_FOUND


def test_sweep_removes_only_expired_sessions(sessions, users, store, clock):
    store.append(USERS, {"username": "other", "password": "pw", "status": "active"})
    old = sessions.login("admin", "s3cret").data["token"]
    clock.advance(hours=12)
    fresh = sessions.login("other", "pw").data["token"]
    clock.advance(hours=13)

    assert sessions.sweep_expired() == 1
    assert store.find_by_key(SESSIONS, "token", old) is None
    assert sessions.validate(fresh).success


def test_token_must_match_exactly(sessions, users):
    token = sessions.login("admin", "s3cret").data["token"]

    assert sessions.validate("  " + token.upper() + " ").error is ErrorKind.INVALID_TOKEN
    assert sessions.validate(token + " ").error is ErrorKind.INVALID_TOKEN
    assert sessions.logout(token.upper()).success
    assert sessions.validate(token).success
