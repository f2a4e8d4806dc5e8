import json
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from health_assistant.config import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from health_assistant.core.models import UserContext
from health_assistant.storage.database import Database


class UserExistsError(Exception):
    pass


@dataclass
class UserRecord:
    id: str
    email: str
    name: str
    password_hash: str
    conditions: list[str] = field(default_factory=list)
    preferred_language: str = DEFAULT_LANGUAGE
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "conditions": list(self.conditions),
            "preferredLanguage": self.preferred_language,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _validate_language(language: str) -> str:
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language: {language}")
    return language


class UserStore:
    def __init__(self, db: Database):
        self.db = db

    def create_user(
        self,
        email: str,
        name: str,
        password_hash: str,
        preferred_language: str = DEFAULT_LANGUAGE,
        conditions: Optional[list[str]] = None,
    ) -> UserRecord:
        now = _now()
        record = UserRecord(
            id=str(uuid.uuid4()),
            email=email.strip().lower(),
            name=name,
            password_hash=password_hash,
            conditions=list(conditions or []),
            preferred_language=_validate_language(preferred_language),
            created_at=now,
            updated_at=now,
        )

        try:
            self.db.execute("""
                INSERT INTO users
                (id, email, name, password_hash, conditions, preferred_language, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                record.id, record.email, record.name, record.password_hash,
                json.dumps(record.conditions), record.preferred_language,
                record.created_at, record.updated_at,
            ))
            self.db.commit()
        except sqlite3.IntegrityError as e:
            raise UserExistsError(f"User already exists: {record.email}") from e

        return record

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        row = self.db.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_record(row) if row else None

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        row = self.db.execute(
            "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
        ).fetchone()
        return self._row_to_record(row) if row else None

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        conditions: Optional[list[str]] = None,
        preferred_language: Optional[str] = None,
    ) -> Optional[UserRecord]:
        record = self.get_by_id(user_id)
        if record is None:
            return None

        if name:
            record.name = name
        if conditions is not None:
            record.conditions = [c.strip() for c in conditions if c and c.strip()]
        if preferred_language:
            record.preferred_language = _validate_language(preferred_language)
        record.updated_at = _now()

        self.db.execute("""
            UPDATE users
            SET name = ?, conditions = ?, preferred_language = ?, updated_at = ?
            WHERE id = ?
        """, (
            record.name, json.dumps(record.conditions),
            record.preferred_language, record.updated_at, record.id,
        ))
        self.db.commit()
        return record

    def get_context(self, user_id: str) -> Optional[UserContext]:
        record = self.get_by_id(user_id)
        if record is None:
            return None
        return UserContext(
            conditions=list(record.conditions),
            preferred_language=record.preferred_language,
        )

    def _row_to_record(self, row: sqlite3.Row) -> UserRecord:
        return UserRecord(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            password_hash=row["password_hash"],
            conditions=json.loads(row["conditions"] or "[]"),
            preferred_language=row["preferred_language"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
