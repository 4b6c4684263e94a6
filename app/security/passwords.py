from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6


def hash_password(plain_password: str) -> str:
    """Return bcrypt hash for plain_password."""
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, stored_hash: str) -> bool:
    """Verify a candidate password against a stored bcrypt hash."""
    if not stored_hash:
        return False
    try:
        return pwd_context.verify(plain_password, stored_hash)
    except ValueError:
        # Unknown or malformed hash
        return False
