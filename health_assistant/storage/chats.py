from datetime import datetime

from health_assistant.core.models import ChatTurn
from health_assistant.storage.database import Database


class ChatStore:
    """Append-only chat transcript per user."""

    def __init__(self, db: Database):
        self.db = db

    def append(self, user_id: str, turn: ChatTurn):
        self.append_many(user_id, [turn])

    def append_many(self, user_id: str, turns: list[ChatTurn]):
        """Insert the turns in one transaction; on any error none are stored."""
        for turn in turns:
            if turn.role not in ("user", "assistant"):
                raise ValueError(f"Invalid chat role: {turn.role}")

        # Connection context manager commits, or rolls back on error
        with self.db.connection as conn:
            conn.executemany("""
                INSERT INTO chats (user_id, role, content, timestamp, language)
                VALUES (?, ?, ?, ?, ?)
            """, [
                (user_id, turn.role, turn.content, turn.timestamp.isoformat(), turn.language)
                for turn in turns
            ])

    def get_messages(self, user_id: str) -> list[ChatTurn]:
        cursor = self.db.execute("""
            SELECT role, content, timestamp, language
            FROM chats
            WHERE user_id = ?
            ORDER BY id
        """, (user_id,))
        return [self._row_to_turn(row) for row in cursor.fetchall()]

    def get_recent(self, user_id: str, limit: int) -> list[ChatTurn]:
        if limit <= 0:
            return []

        cursor = self.db.execute("""
            SELECT role, content, timestamp, language
            FROM chats
            WHERE user_id = ?
            ORDER BY id DESC
            LIMIT ?
        """, (user_id, limit))
        rows = cursor.fetchall()
        # Oldest first
        return [self._row_to_turn(row) for row in reversed(rows)]

    def clear(self, user_id: str):
        self.db.execute("DELETE FROM chats WHERE user_id = ?", (user_id,))
        self.db.commit()

    def count(self, user_id: str) -> int:
        cursor = self.db.execute("SELECT COUNT(*) FROM chats WHERE user_id = ?", (user_id,))
        return cursor.fetchone()[0]

    def _row_to_turn(self, row) -> ChatTurn:
        return ChatTurn(
            role=row["role"],
            content=row["content"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            language=row["language"],
        )
