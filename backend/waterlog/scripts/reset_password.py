#!/usr/bin/env python3
"""
Reset a user's password from the command line.

The new password is taken from the command line, from piped stdin, or from
a hidden interactive prompt (asked twice).

Exit codes:
0 password updated
2 usage error
3 passwords do not match
4 password too short
5 user not found
"""
import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.orm import Session

from waterlog.auth import get_password_hash
from waterlog.database import SessionLocal
from waterlog.models import User

MIN_PASSWORD_LENGTH = 8

EXIT_MISMATCH = 3
EXIT_TOO_SHORT = 4
EXIT_NOT_FOUND = 5


class ResetError(Exception):
    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.exit_code = exit_code


def read_new_password(stdin=None) -> str:
    """Read from piped stdin, or prompt twice without echo on a terminal."""
    if stdin is None:
        stdin = sys.stdin
    if not stdin.isatty():
        return stdin.read().strip()

    password = getpass.getpass("New password: ")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        raise ResetError("Passwords do not match", EXIT_MISMATCH)
    return password


def reset_password(db: Session, email: str, password: str) -> User:
    """Store a new bcrypt hash for the user with this email."""
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ResetError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters", EXIT_TOO_SHORT)

    user = db.query(User).filter(User.email == email.lower()).first()
    if user is None:
        raise ResetError(f"User not found: {email}", EXIT_NOT_FOUND)

    user.password_hash = get_password_hash(password)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return user


def main(argv=None, stdin=None):
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("email", help="account to reset")
    parser.add_argument("password", nargs="?", help="new password (prompted for if omitted)")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        password: Optional[str] = args.password
        if not password:
            password = read_new_password(stdin)
        reset_password(db, args.email, password)
    except ResetError as e:
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(e.exit_code)
    finally:
        db.close()

    print(f"✓ Password updated for {args.email}")
    sys.exit(0)


if __name__ == "__main__":
    main()
