from typing import Optional, Tuple

from passlib.context import CryptContext

from app.core.config import settings

# Hashes with a different cost than BCRYPT_ROUNDS are flagged for upgrade.
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
    bcrypt__min_rounds=settings.BCRYPT_ROUNDS,
    bcrypt__max_rounds=settings.BCRYPT_ROUNDS,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def verify_and_upgrade(plain_password: str, hashed_password: str) -> Tuple[bool, Optional[str]]:
    """Check a password; also return a fresh hash when the stored one is outdated."""
    return pwd_context.verify_and_update(plain_password, hashed_password)


def normalize_email(email: str) -> str:
    """Emails are stored and compared trimmed and lower-cased."""
    return email.strip().lower()
