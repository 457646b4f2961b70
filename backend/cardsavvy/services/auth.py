"""Admin accounts and password checks for the back-office."""
import base64
import hashlib
import hmac
import logging
import secrets

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cardsavvy.models.catalog import User

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 260_000
_ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, salt: str | None = None) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<hash>``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS
    )
    encoded = base64.b64encode(digest).decode("ascii")
    return f"{_ALGORITHM}${PBKDF2_ITERATIONS}${salt}${encoded}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, salt, expected = stored.split("$", 3)
    except ValueError:
        return False
    if algorithm != _ALGORITHM:
        return False

    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations)
    )
    return hmac.compare_digest(base64.b64encode(digest).decode("ascii"), expected)


async def authenticate(
    session: AsyncSession, username_or_email: str, password: str
) -> User | None:
    """Look up a user by username or email and check the password."""
    result = await session.execute(
        select(User).where(
            or_(User.username == username_or_email, User.email == username_or_email)
        )
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(password, user.password_hash):
        logger.info(f"Failed login for '{username_or_email}'")
        return None
    return user


async def create_user(
    session: AsyncSession,
    username: str,
    email: str,
    password: str,
    is_admin: bool = False,
) -> User:
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    session.add(user)
    await session.flush()
    logger.info(f"Created user '{username}' (admin={is_admin})")
    return user
