"""
Conversation engine: two-party conversations and their messages.
"""
from typing import List, Optional, Tuple

from mingle.errors import Forbidden, InvalidArgument, NotFound, SelfReference
from mingle.models.models import Conversation, Message
from mingle.repositories.conversations_repo import ConversationsRepository
from mingle.repositories.messages_repo import MessagesRepository
from mingle.services.access_control import require_actor, require_owner
from mingle.services.identity_service import IdentityStore
from mingle.utils.logger import get_logger

logger = get_logger(__name__)


def _require_content(content: Optional[str]) -> str:
    content = (content or "").strip()
    if not content:
        raise InvalidArgument("Message content is required")
    return content


class ConversationEngine:
    def __init__(self, identity: IdentityStore):
        self.identity = identity
        self.conversations_repo = ConversationsRepository(identity.db)
        self.messages_repo = MessagesRepository(identity.db)

    def get_or_create_conversation(self, user_a: str, user_b: str) -> Tuple[Conversation, bool]:
        """
        Return (conversation, created) for the unordered pair {user_a, user_b}.

        Calls for (A, B) and (B, A) converge on one conversation, also when they race.
        """
        user_a = require_actor(user_a)
        if str(user_a) == str(user_b):
            raise SelfReference("Cannot start a conversation with yourself")
        self.identity.require_exists(user_a)
        self.identity.require_exists(user_b)

        conversation, created = self.conversations_repo.get_or_create(user_a, user_b)
        if created:
            logger.info(f"Conversation {conversation.id} created between {user_a} and {user_b}")
        return self._decorate([conversation])[0], created

    def list_conversations(self, user_id: str) -> List[Conversation]:
        """The user's conversations, most recently active first, each with its latest message."""
        user_id = require_actor(user_id)
        return self._decorate(self.conversations_repo.list_for_user(user_id))

    def get_conversation(self, conversation_id: str, actor_id: Optional[str]) -> Conversation:
        return self._decorate([self._participant_conversation(conversation_id, actor_id)])[0]

    def send_message(self, conversation_id: str, sender_id: Optional[str], content: Optional[str]) -> Message:
        conversation = self._participant_conversation(conversation_id, sender_id)
        content = _require_content(content)

        message = self.messages_repo.create_message(conversation.id, sender_id, content)
        logger.info(f"User {sender_id} sent message {message.id} in conversation {conversation.id}")
        return self._with_senders([message])[0]

    def list_messages(self, conversation_id: str, actor_id: Optional[str]) -> List[Message]:
        """All messages, oldest first. Only participants may read them."""
        conversation = self._participant_conversation(conversation_id, actor_id)
        return self._with_senders(self.messages_repo.list_for_conversation(conversation.id))

    def edit_message(self, message_id: str, actor_id: Optional[str], content: Optional[str]) -> Message:
        message = self.messages_repo.get_message(message_id)
        if message is None:
            raise NotFound("Message not found")
        require_owner(actor_id, message.sender_id, "message")
        content = _require_content(content)

        if not self.messages_repo.update_content(message.id, content):
            raise NotFound("Message not found")
        logger.info(f"User {actor_id} edited message {message.id}")
        return self._with_senders([self.messages_repo.get_message(message.id)])[0]

    def delete_message(self, message_id: str, actor_id: Optional[str]) -> None:
        message = self.messages_repo.get_message(message_id)
        if message is None:
            raise NotFound("Message not found")
        require_owner(actor_id, message.sender_id, "message")
        if not self.messages_repo.delete_message(message.id):
            raise NotFound("Message not found")
        logger.info(f"User {actor_id} deleted message {message.id}")

    def _participant_conversation(self, conversation_id: str, actor_id: Optional[str]) -> Conversation:
        actor_id = require_actor(actor_id)
        conversation = self.conversations_repo.get_conversation(conversation_id)
        if conversation is None:
            raise NotFound("Conversation not found")
        if not conversation.has_participant(actor_id):
            raise Forbidden("You are not a participant in this conversation")
        return conversation

    def _with_senders(self, messages: List[Message]) -> List[Message]:
        summaries = self.identity.get_summaries(message.sender_id for message in messages)
        for message in messages:
            message.sender = summaries.get(message.sender_id)
        return messages

    def _decorate(self, conversations: List[Conversation]) -> List[Conversation]:
        user_ids = {uid for conversation in conversations for uid in conversation.participant_ids}
        summaries = self.identity.get_summaries(user_ids)
        latest = self.messages_repo.latest_for_conversations([c.id for c in conversations])
        for conversation in conversations:
            conversation.participants = [
                summaries[uid] for uid in conversation.participant_ids if uid in summaries
            ]
            last = latest.get(conversation.id)
            if last is not None:
                # senders are always participants
                last.sender = summaries.get(last.sender_id)
            conversation.last_message = last
        return conversations
