"""
passcode.py - One-way passcode hashing.

bcrypt ($2b$) with a random salt. Hashes written by earlier deployments use
the same format and cost factor, so stored claims keep verifying.
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 5


class PasscodeHasher:
    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("ascii"), salt).decode("ascii")

    def verify(self, plaintext: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("ascii"), hashed.encode("ascii"))
        except ValueError:
            logger.warning("Stored passcode hash is malformed; rejecting passcode")
            return False


def default_hasher() -> PasscodeHasher:
    from zscan_sync.config import settings

    return PasscodeHasher(rounds=settings.BCRYPT_ROUNDS)
