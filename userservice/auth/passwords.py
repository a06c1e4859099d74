"""
One-way credential hashing with bcrypt.
"""
import os
import bcrypt

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

# Hash of a random secret, checked when the claimed user does not exist so
# that both failure paths pay the same bcrypt cost.
_DUMMY_HASH = bcrypt.hashpw(b"userservice-timing-guard", bcrypt.gensalt(BCRYPT_ROUNDS)).decode("utf-8")


def hash_password(password: str) -> str:
    """Generate password hash using bcrypt."""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt(BCRYPT_ROUNDS)
    ).decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """Check if provided password matches the stored hash."""
    try:
        return bcrypt.checkpw(
            password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        # Malformed stored hash, or a secret bcrypt refuses to process
        return False


def burn_verification(password: str) -> None:
    """Run a verification against a throwaway hash and discard the result."""
    verify_password(password, _DUMMY_HASH)
