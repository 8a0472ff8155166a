from jose import jwt

from services.directory_service.app.api.procedures import router
from services.directory_service.app.core.security import (
    ALGORITHM,
    Caller,
    authorize,
    create_session_token,
    decode_session_token,
)

SECRET = "test-secret"


def test_token_round_trip():
    token = create_session_token(Caller(id="7", role="admin", name="Site Admin"), SECRET)
    caller = decode_session_token(token, SECRET)
    assert caller == Caller(id="7", role="admin", name="Site Admin")
    assert caller.is_admin


def test_wrong_secret_is_anonymous():
    token = create_session_token(Caller(id="7", role="admin"), SECRET)
    assert decode_session_token(token, "another-secret") is None


def test_missing_secret_is_anonymous():
    token = create_session_token(Caller(id="7", role="admin"), SECRET)
    assert decode_session_token(token, None) is None


def test_expired_token_is_anonymous():
    token = create_session_token(Caller(id="7", role="admin"), SECRET, expires_minutes=-5)
    assert decode_session_token(token, SECRET) is None


def test_garbage_token_is_anonymous():
    assert decode_session_token("not.a.jwt", SECRET) is None


def test_token_without_subject_is_anonymous():
    token = jwt.encode({"role": "admin"}, SECRET, algorithm=ALGORITHM)
    assert decode_session_token(token, SECRET) is None


def test_unknown_role_downgraded_to_user():
    token = jwt.encode({"sub": "9", "role": "superuser"}, SECRET, algorithm=ALGORITHM)
    caller = decode_session_token(token, SECRET)
    assert caller.role == "user"
    assert not caller.is_admin


class TestAuthorize:
    admin = Caller(id="1", role="admin")
    user = Caller(id="2", role="user")

    def test_public_procedures_open_to_everyone(self):
        for name in ("members.list", "members.getById", "members.getFilterOptions", "auth.me"):
            procedure = router.get(name)
            assert authorize(None, procedure)
            assert authorize(self.user, procedure)
            assert authorize(self.admin, procedure)

    def test_mutations_require_admin(self):
        for name in ("members.create", "members.update", "members.delete"):
            procedure = router.get(name)
            assert not authorize(None, procedure)
            assert not authorize(self.user, procedure)
            assert authorize(self.admin, procedure)
