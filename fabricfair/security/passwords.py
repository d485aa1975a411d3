"""bcrypt password hashing for admin accounts."""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 10

# Compared against when the username is unknown so both failure paths cost a hash check.
_DUMMY_HASH = bcrypt.hashpw(b"fabricfair-dummy", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode()


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def verify_password(password: str, hashed: str | None) -> bool:
    """Return True when ``password`` matches ``hashed``; malformed hashes never match."""
    target = hashed or _DUMMY_HASH
    try:
        matched = bcrypt.checkpw(password.encode(), target.encode())
    except ValueError:
        return False
    return matched and hashed is not None
