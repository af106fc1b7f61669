from typing import Dict, List, Optional, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError

from mingle.db.database import Database, new_id
from mingle.db.integrity import FOREIGN_KEY, UNIQUE, constraint_kind
from mingle.errors import Conflict, NotFound, SelfReference
from mingle.models.models import Conversation
from mingle.utils.logger import get_logger
from mingle.utils.time_utils import dt_from_utc_iso

logger = get_logger(__name__)


def make_pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a two-party conversation."""
    a, b = str(user_a), str(user_b)
    if a == b:
        raise SelfReference("Cannot start a conversation with yourself")
    low, high = sorted((a, b))
    return f"{low}:{high}"


class ConversationsRepository:
    """Repository for two-party conversations and their participant rows."""

    def __init__(self, db: Database):
        self.db = db

    def get_or_create(self, user_a: str, user_b: str) -> Tuple[Conversation, bool]:
        """
        Return the conversation for {user_a, user_b}, creating it if needed.

        Returns (conversation, created). The unique pair_key makes creation
        converge: when two callers race, the loser's INSERT fails and it reads
        back the winner's row.
        """
        pair_key = make_pair_key(user_a, user_b)
        existing = self.get_by_pair_key(pair_key)
        if existing:
            return existing, False

        conversation_id = new_id()
        now = self.db.now()
        try:
            with self.db.session() as session:
                session.execute(
                    text("""
                        INSERT INTO conversations(conversation_id, pair_key, created_at_utc, updated_at_utc)
                        VALUES (:conversation_id, :pair_key, :created_at_utc, :updated_at_utc);
                    """),
                    {
                        "conversation_id": conversation_id,
                        "pair_key": pair_key,
                        "created_at_utc": now,
                        "updated_at_utc": now,
                    },
                )
                for user_id in (str(user_a), str(user_b)):
                    session.execute(
                        text("""
                            INSERT INTO conversation_participants(conversation_id, user_id)
                            VALUES (:conversation_id, :user_id);
                        """),
                        {"conversation_id": conversation_id, "user_id": user_id},
                    )
        except IntegrityError as e:
            kind = constraint_kind(e)
            if kind == UNIQUE:
                winner = self.get_by_pair_key(pair_key)
                if winner is None:
                    # Created and deleted again between our INSERT and this read
                    raise Conflict() from e
                logger.info(f"Conversation for pair {pair_key} created concurrently, reusing {winner.id}")
                return winner, False
            if kind == FOREIGN_KEY:
                raise NotFound("User not found") from e
            raise

        return self.get_conversation(conversation_id), True

    def get_by_pair_key(self, pair_key: str) -> Optional[Conversation]:
        with self.db.session() as session:
            row = session.execute(
                text("SELECT conversation_id FROM conversations WHERE pair_key = :pair_key LIMIT 1;"),
                {"pair_key": pair_key},
            ).fetchone()
        return self.get_conversation(str(row[0])) if row else None

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        conversations = self._load([str(conversation_id)])
        return conversations[0] if conversations else None

    def list_for_user(self, user_id: str) -> List[Conversation]:
        """Every conversation the user takes part in, most recently active first."""
        with self.db.session() as session:
            rows = session.execute(
                text("""
                    SELECT c.conversation_id
                    FROM conversations c
                    JOIN conversation_participants p ON p.conversation_id = c.conversation_id
                    WHERE p.user_id = :user_id
                    ORDER BY c.updated_at_utc DESC, c.conversation_id DESC;
                """),
                {"user_id": str(user_id)},
            ).fetchall()
        return self._load([str(row[0]) for row in rows])

    def is_participant(self, conversation_id: str, user_id: str) -> bool:
        with self.db.session() as session:
            row = session.execute(
                text("""
                    SELECT 1 FROM conversation_participants
                    WHERE conversation_id = :conversation_id AND user_id = :user_id
                    LIMIT 1;
                """),
                {"conversation_id": str(conversation_id), "user_id": str(user_id)},
            ).fetchone()
            return bool(row)

    def _load(self, conversation_ids: List[str]) -> List[Conversation]:
        """Load conversations with participant ids, preserving the order of conversation_ids."""
        if not conversation_ids:
            return []
        with self.db.session() as session:
            conv_rows = session.execute(
                text("""
                    SELECT conversation_id, created_at_utc, updated_at_utc FROM conversations
                    WHERE conversation_id IN :ids;
                """).bindparams(bindparam("ids", expanding=True)),
                {"ids": conversation_ids},
            ).mappings().fetchall()
            participant_rows = session.execute(
                text("""
                    SELECT conversation_id, user_id FROM conversation_participants
                    WHERE conversation_id IN :ids
                    ORDER BY user_id;
                """).bindparams(bindparam("ids", expanding=True)),
                {"ids": conversation_ids},
            ).fetchall()

        participants: Dict[str, List[str]] = {}
        for conversation_id, user_id in participant_rows:
            participants.setdefault(str(conversation_id), []).append(str(user_id))

        by_id = {
            str(row["conversation_id"]): Conversation(
                id=str(row["conversation_id"]),
                participant_ids=participants.get(str(row["conversation_id"]), []),
                created_at=dt_from_utc_iso(row["created_at_utc"]),
                updated_at=dt_from_utc_iso(row["updated_at_utc"]),
            )
            for row in conv_rows
        }
        return [by_id[cid] for cid in conversation_ids if cid in by_id]
