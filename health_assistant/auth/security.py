import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from health_assistant.config import PASSWORD_HASH_ITERATIONS, TOKEN_TTL_HOURS
from health_assistant.storage.database import Database

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, iterations: int = PASSWORD_HASH_ITERATIONS) -> str:
    # Format: algorithm$iterations$salt$hash
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        algorithm, iterations, salt, expected = stored_hash.split("$")
        iterations = int(iterations)
    except ValueError:
        return False

    if algorithm != HASH_ALGORITHM:
        return False

    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations)
    return hmac.compare_digest(digest.hex(), expected)


class TokenService:
    """Opaque bearer tokens stored alongside the users."""

    def __init__(self, db: Database, ttl_hours: int = TOKEN_TTL_HOURS):
        self.db = db
        self.ttl = timedelta(hours=ttl_hours)

    def issue(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + self.ttl

        self.db.execute(
            "INSERT INTO auth_tokens (token, user_id, expires_at) VALUES (?, ?, ?)",
            (token, user_id, expires_at.isoformat()),
        )
        self.db.commit()
        return token

    def verify(self, token: str) -> Optional[str]:
        if not token:
            return None

        row = self.db.execute(
            "SELECT user_id, expires_at FROM auth_tokens WHERE token = ?", (token,)
        ).fetchone()
        if row is None:
            return None

        if datetime.fromisoformat(row["expires_at"]) <= datetime.now(timezone.utc):
            logger.info("Rejected expired token")
            self.revoke(token)
            return None

        return row["user_id"]

    def revoke(self, token: str):
        self.db.execute("DELETE FROM auth_tokens WHERE token = ?", (token,))
        self.db.commit()
