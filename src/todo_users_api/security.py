from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of the input
_BCRYPT_MAX_BYTES = 72


def _to_bytes(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > _BCRYPT_MAX_BYTES:
        logger.warning("Password exceeds %d bytes, truncating", _BCRYPT_MAX_BYTES)
        password_bytes = password_bytes[:_BCRYPT_MAX_BYTES]
    return password_bytes


# PUBLIC_INTERFACE
class PasswordHasher:
    """
    One-way, salted password hashing with a fixed bcrypt work factor.

    hash() is not deterministic; use verify() to compare a plaintext with a digest.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Return a bcrypt digest of the plaintext password."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_to_bytes(plaintext), salt).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return True if the plaintext matches the digest. Malformed digests never match."""
        if not digest:
            return False
        try:
            return bcrypt.checkpw(_to_bytes(plaintext), digest.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password digest is not a valid bcrypt hash")
            return False
