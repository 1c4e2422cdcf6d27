import hashlib
import logging

import bcrypt

from envindo.core.config import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    raw = password.encode("utf-8")
    if len(raw) > _BCRYPT_MAX_BYTES:
        # Long passphrases are pre-hashed so every byte still counts
        raw = hashlib.sha256(raw).hexdigest().encode("utf-8")
    return raw


def get_password_hash(password: str) -> str:
    """bcrypt hash of ``password``; cost factor from ``settings.BCRYPT_ROUNDS``."""
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError as e:
        # Malformed hash in the database
        logger.warning(f"Password verification error: {e}")
        return False
