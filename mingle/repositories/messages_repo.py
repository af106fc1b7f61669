from typing import Dict, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError

from mingle.db.database import Database, new_id
from mingle.db.integrity import FOREIGN_KEY, constraint_kind
from mingle.errors import NotFound
from mingle.models.models import Message
from mingle.utils.time_utils import dt_from_utc_iso

_MESSAGE_COLUMNS = "message_id, conversation_id, sender_id, content, created_at_utc, updated_at_utc"


def _row_to_message(row) -> Message:
    return Message(
        id=str(row["message_id"]),
        conversation_id=str(row["conversation_id"]),
        sender_id=str(row["sender_id"]),
        content=row["content"],
        created_at=dt_from_utc_iso(row["created_at_utc"]),
        updated_at=dt_from_utc_iso(row["updated_at_utc"]),
    )


class MessagesRepository:
    """Repository for direct messages inside conversations."""

    def __init__(self, db: Database):
        self.db = db

    def create_message(self, conversation_id: str, sender_id: str, content: str) -> Message:
        """Insert a message and bump the conversation's updated_at in the same transaction."""
        message_id = new_id()
        now = self.db.now()
        try:
            with self.db.session() as session:
                session.execute(
                    text(f"""
                        INSERT INTO messages({_MESSAGE_COLUMNS})
                        VALUES (:message_id, :conversation_id, :sender_id, :content, :created_at_utc, :updated_at_utc);
                    """),
                    {
                        "message_id": message_id,
                        "conversation_id": str(conversation_id),
                        "sender_id": str(sender_id),
                        "content": content,
                        "created_at_utc": now,
                        "updated_at_utc": now,
                    },
                )
                session.execute(
                    text("""
                        UPDATE conversations SET updated_at_utc = :updated_at_utc
                        WHERE conversation_id = :conversation_id;
                    """),
                    {"updated_at_utc": now, "conversation_id": str(conversation_id)},
                )
        except IntegrityError as e:
            if constraint_kind(e) == FOREIGN_KEY:
                raise NotFound("Conversation not found") from e
            raise
        return Message(
            id=message_id,
            conversation_id=str(conversation_id),
            sender_id=str(sender_id),
            content=content,
            created_at=dt_from_utc_iso(now),
            updated_at=dt_from_utc_iso(now),
        )

    def get_message(self, message_id: str) -> Optional[Message]:
        with self.db.session() as session:
            row = session.execute(
                text(f"SELECT {_MESSAGE_COLUMNS} FROM messages WHERE message_id = :message_id LIMIT 1;"),
                {"message_id": str(message_id)},
            ).mappings().fetchone()
            return _row_to_message(row) if row else None

    def list_for_conversation(self, conversation_id: str) -> List[Message]:
        """All messages of a conversation, oldest first."""
        with self.db.session() as session:
            rows = session.execute(
                text(f"""
                    SELECT {_MESSAGE_COLUMNS} FROM messages
                    WHERE conversation_id = :conversation_id
                    ORDER BY created_at_utc ASC, message_id ASC;
                """),
                {"conversation_id": str(conversation_id)},
            ).mappings().fetchall()
            return [_row_to_message(row) for row in rows]

    def latest_for_conversations(self, conversation_ids: List[str]) -> Dict[str, Message]:
        """The single most recent message of each conversation that has one."""
        if not conversation_ids:
            return {}
        with self.db.session() as session:
            rows = session.execute(
                text(f"""
                    SELECT {_MESSAGE_COLUMNS} FROM messages m
                    WHERE m.conversation_id IN :ids
                      AND m.message_id = (
                          SELECT m2.message_id FROM messages m2
                          WHERE m2.conversation_id = m.conversation_id
                          ORDER BY m2.created_at_utc DESC, m2.message_id DESC
                          LIMIT 1
                      );
                """).bindparams(bindparam("ids", expanding=True)),
                {"ids": [str(cid) for cid in conversation_ids]},
            ).mappings().fetchall()
            return {str(row["conversation_id"]): _row_to_message(row) for row in rows}

    def update_content(self, message_id: str, content: str) -> bool:
        with self.db.session() as session:
            result = session.execute(
                text("""
                    UPDATE messages SET content = :content, updated_at_utc = :updated_at_utc
                    WHERE message_id = :message_id;
                """),
                {"content": content, "updated_at_utc": self.db.now(), "message_id": str(message_id)},
            )
            return result.rowcount > 0

    def delete_message(self, message_id: str) -> bool:
        with self.db.session() as session:
            result = session.execute(
                text("DELETE FROM messages WHERE message_id = :message_id;"),
                {"message_id": str(message_id)},
            )
            return result.rowcount > 0
