"""
Conversation history store
Appends turn pairs to MongoDB via Beanie.
"""
from datetime import datetime

from beanie.operators import Set

from app.models.conversation import Conversation, ConversationMessage


class ConversationStore:
    async def record_turn(
        self,
        owner_id: str,
        conversation_id: str,
        user_text: str,
        assistant_text: str,
        speak_language: str,
        answer_language: str,
    ) -> None:
        """
        Touch the conversation, then append the user and assistant messages.
        The three writes are independent; a failure part way leaves the earlier ones in place.
        """
        now = datetime.utcnow()
        await Conversation.find_one(
            Conversation.owner_id == owner_id,
            Conversation.conversation_id == conversation_id,
        ).upsert(
            Set({Conversation.updated_at: now}),
            on_insert=Conversation(
                owner_id=owner_id,
                conversation_id=conversation_id,
                created_at=now,
                updated_at=now,
            ),
        )

        for role, content in (("user", user_text), ("assistant", assistant_text)):
            message = ConversationMessage(
                owner_id=owner_id,
                conversation_id=conversation_id,
                role=role,
                content=content,
                speak_language=speak_language,
                answer_language=answer_language,
            )
            await message.insert()
