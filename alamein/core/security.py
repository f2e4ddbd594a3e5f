"""
Password hashing helpers.
"""

import bcrypt


class PasswordHasher:
    """Salted one-way password hashing backed by bcrypt."""

    # Work factor passed to bcrypt.gensalt(); tests lower it to keep runs fast.
    rounds: int = 12

    @classmethod
    def hash_password(cls, password: str) -> str:
        """
        Hash a password using bcrypt.

        bcrypt only looks at the first 72 bytes, so longer inputs are
        truncated before hashing (and before verification).
        """
        password_bytes = password.encode("utf-8")[:72]
        hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=cls.rounds))
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Check a password against its hash in constant time."""
        if not plain_password or not hashed_password:
            return False
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8")[:72], hashed_password.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash.
            return False
