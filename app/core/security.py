"""Password hashing with bcrypt through passlib."""

from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.exceptions import HashingError

settings = get_settings()
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

# bcrypt silently ignores everything past this many bytes
MAX_PASSWORD_BYTES = 72


def password_fits(password: str) -> bool:
    """True if bcrypt will see every byte of ``password``."""
    return len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of ``password``."""
    if not password_fits(password):
        raise HashingError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
    try:
        return pwd_context.hash(password)
    except (ValueError, TypeError) as exc:
        raise HashingError("Failed to hash password") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """
    Check ``plain`` against a stored hash.

    A mismatch returns False, and so does a password longer than bcrypt can
    see, since no stored hash was made from it. Only a hash passlib cannot
    identify or parse raises HashingError.
    """
    if not password_fits(plain):
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError) as exc:
        raise HashingError("Failed to verify password") from exc


# Precomputed fake hash to mitigate timing attacks
FAKE_HASHED_PASSWORD = hash_password(
    "this_is_a_fake_user_that_never_exists_2025"
)
