import threading

import pytest
from sqlalchemy.exc import SQLAlchemyError

import tradejournal.infra.user_repo as user_repo
from tradejournal.auth.passwords import hash_password
from tradejournal.auth.users import INVALID_CREDENTIALS, USERNAME_TAKEN, login, signup
from tradejournal.core.results import Failure, FailureKind, Success
from tradejournal.infra.models import UserRow


def test_signup_then_login_issues_a_session(user_store, sessions):
    created = signup(user_store, sessions, "alice", "wonderland")
    assert isinstance(created, Success)
    assert created.value.user.username == "alice"
    assert created.value.redirect_to == "/"

    result = login(user_store, sessions, "alice", "wonderland")
    assert isinstance(result, Success)
    outcome = result.value
    assert outcome.cookie.value == outcome.session.id
    assert sessions.validate_session(outcome.cookie.value).user.id == created.value.user.id


def test_unknown_user_and_wrong_password_fail_identically(user_store, sessions):
    signup(user_store, sessions, "alice", "wonderland")

    unknown = login(user_store, sessions, "nobody", "wonderland")
    wrong = login(user_store, sessions, "alice", "looking-glass")

    assert unknown == wrong == INVALID_CREDENTIALS
    assert unknown.kind is FailureKind.UNAUTHENTICATED


def test_user_without_credential_cannot_log_in(db, user_store, sessions):
    with db.session() as s:
        s.add(UserRow(id="orphanuserid000000000000", username="orphan"))

    assert login(user_store, sessions, "orphan", "anything") == INVALID_CREDENTIALS


def test_duplicate_signup_is_a_conflict(user_store, sessions):
    assert isinstance(signup(user_store, sessions, "alice", "wonderland"), Success)
    assert signup(user_store, sessions, "alice", "another-one") == USERNAME_TAKEN


def test_user_is_not_persisted_when_credential_insert_fails(user_store, monkeypatch):
    def boom(user_id, hashed_password):
        raise RuntimeError("credential insert failed")

    monkeypatch.setattr(user_repo, "_credential_row", boom)

    with pytest.raises(RuntimeError):
        user_store.create_user_with_credential("bob", hash_password("builder"))

    assert user_store.username_exists("bob") is False
    assert user_store.find_user_by_username("bob") is None


def test_concurrent_signups_with_same_username(user_store, sessions):
    barrier = threading.Barrier(2)
    results = []
    lock = threading.Lock()

    def attempt(password):
        barrier.wait()
        r = signup(user_store, sessions, "alice", password)
        with lock:
            results.append(r)

    threads = [threading.Thread(target=attempt, args=(pw,)) for pw in ("first-pass", "second-pass")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    successes = [r for r in results if isinstance(r, Success)]
    conflicts = [r for r in results if isinstance(r, Failure) and r.kind is FailureKind.CONFLICT]
    assert len(successes) == 1
    assert len(conflicts) == 1
    assert user_store.username_exists("alice")


class _DownUserStore:
    def find_user_by_username(self, username):
        raise SQLAlchemyError("connection refused on 10.0.0.5")

    def username_exists(self, username):
        raise SQLAlchemyError("connection refused on 10.0.0.5")


def test_storage_errors_become_generic_failures(sessions):
    store = _DownUserStore()

    lr = login(store, sessions, "alice", "wonderland")
    sr = signup(store, sessions, "alice", "wonderland")

    assert lr.kind is FailureKind.INTERNAL
    assert sr.kind is FailureKind.INTERNAL
    assert "10.0.0.5" not in lr.message
    assert "10.0.0.5" not in sr.message
