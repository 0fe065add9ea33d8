import io

import pytest

from conftest import TEST_PASSWORD, TestingSessionLocal
from waterlog.auth import verify_password
from waterlog.models import User
from waterlog.scripts import reset_password as cli


@pytest.fixture(autouse=True)
def scripted_sessions(monkeypatch):
    monkeypatch.setattr(cli, "SessionLocal", TestingSessionLocal)


class Terminal(io.StringIO):
    def isatty(self):
        return True


def run(argv, stdin=None):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv, stdin=stdin)
    return exc.value.code


def stored_hash(db_session, email):
    db_session.expire_all()
    return db_session.query(User).filter(User.email == email).one().password_hash


def test_password_from_argument(db_session, user, capsys):
    assert run([user.email, "fresh-password-1"]) == 0
    assert "Password updated" in capsys.readouterr().out
    assert verify_password("fresh-password-1", stored_hash(db_session, user.email))


def test_password_from_piped_stdin(db_session, user):
    assert run([user.email.upper()], stdin=io.StringIO("piped-password\n")) == 0
    assert verify_password("piped-password", stored_hash(db_session, user.email))


def test_prompt_requires_matching_confirmation(db_session, user, monkeypatch):
    answers = iter(["typed-password", "typo-password"])
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: next(answers))

    assert run([user.email], stdin=Terminal()) == cli.EXIT_MISMATCH
    assert verify_password(TEST_PASSWORD, stored_hash(db_session, user.email))


def test_prompt_with_matching_confirmation(db_session, user, monkeypatch):
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "typed-password")

    assert run([user.email], stdin=Terminal()) == 0
    assert verify_password("typed-password", stored_hash(db_session, user.email))


def test_short_password_rejected(db_session, user, capsys):
    assert run([user.email, "short"]) == cli.EXIT_TOO_SHORT
    assert "at least 8" in capsys.readouterr().err
    assert verify_password(TEST_PASSWORD, stored_hash(db_session, user.email))


def test_unknown_user(db_session):
    assert run(["nobody@example.com", "whatever-123"]) == cli.EXIT_NOT_FOUND


def test_email_is_required():
    assert run([]) == 2
